import os

import pytest

from anamnesis.application.scheduler import Scheduler
from anamnesis.domain.scheduling.models import Card, CardQueue, CardType, DeckConfig
from anamnesis.domain.scheduling.ports import Clock, RandomSource
from anamnesis.infrastructure.random_source import PythonRandomSource

NOW = 1_700_000_000  # 2023-11-14 22:13:20 UTC
HOURS = 3600


class FixedClock(Clock):
    """Clock frozen at `now`, with the day rolling over `cut_off_in` seconds later."""

    def __init__(self, now: int = NOW, cut_off_in: int = 6 * HOURS):
        self._now = now
        self._cut_off = now + cut_off_in

    def now(self) -> int:
        return self._now

    def day_cut_off(self) -> int:
        return self._cut_off


class EdgeRandom(RandomSource):
    """Always returns the low (or high) end of the requested range, and records calls."""

    def __init__(self, edge: str = "low"):
        self.edge = edge
        self.calls: list[tuple[int, int]] = []

    def uniform(self, low: int, high: int) -> int:
        self.calls.append((low, high))
        return low if self.edge == "low" else high


class ForbiddenRandom(RandomSource):
    def uniform(self, low: int, high: int) -> int:
        raise AssertionError(f"unexpected random draw in [{low}, {high}]")


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def clock_factory():
    """Build clocks whose day ends `cut_off_in` seconds after NOW."""
    return FixedClock


@pytest.fixture
def rng():
    return PythonRandomSource(seed=1234)


@pytest.fixture
def low_rng():
    return EdgeRandom("low")


@pytest.fixture
def high_rng():
    return EdgeRandom("high")


@pytest.fixture
def forbidden_rng():
    return ForbiddenRandom()


@pytest.fixture
def make_scheduler(clock, rng):
    """Build a Scheduler with a fixed clock; keyword arguments become DeckConfig fields."""

    def _make(card=None, *, rng_override=None, clock_override=None, **config_fields):
        return Scheduler(
            card if card is not None else Card(),
            DeckConfig(**config_fields),
            clock_override or clock,
            rng_override or rng,
        )

    return _make


@pytest.fixture
def review_card(clock):
    """A review card with interval 100 and 250% ease, due today."""
    day_today = clock.day_cut_off() // 86_400
    return Card(
        card_type=CardType.REVIEW,
        card_queue=CardQueue.REVIEW,
        due=day_today,
        interval=100,
        ease_factor=2500,
        reps=10,
    )


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir and clears ANAMNESIS_* variables."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config files
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("ANAMNESIS_"):
            monkeypatch.delenv(key)
    return home
