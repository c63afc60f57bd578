"""
Ports (interfaces) for the scheduler's external collaborators.

The scheduler depends on these abstractions so tests can substitute a fixed
clock and a scripted random source.
"""

from abc import ABC, abstractmethod


class Clock(ABC):
    """
    Port for wall-clock and study-day information.

    Implementations:
        - SystemClock: the host clock plus a configured timezone and rollover hour.
    """

    @abstractmethod
    def now(self) -> int:
        """Return the current unix timestamp in seconds."""
        pass

    @abstractmethod
    def day_cut_off(self) -> int:
        """Return the unix timestamp at which the current study day rolls over."""
        pass


class RandomSource(ABC):
    """
    Port for the single source of randomness used by interval fuzzing.

    Implementations:
        - PythonRandomSource: a private, optionally seeded `random.Random`.
    """

    @abstractmethod
    def uniform(self, low: int, high: int) -> int:
        """Return an integer drawn uniformly from the inclusive range [low, high]."""
        pass
