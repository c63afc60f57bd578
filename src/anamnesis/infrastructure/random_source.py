"""Random source adapter backed by a private `random.Random` instance."""

import random

from anamnesis.domain.scheduling.ports import RandomSource


class PythonRandomSource(RandomSource):
    """Uniform integer draws; pass a seed for reproducible schedules."""

    def __init__(self, seed: int | None = None):
        self._random = random.Random(seed)

    def uniform(self, low: int, high: int) -> int:
        return self._random.randint(low, high)
