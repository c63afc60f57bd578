"""
Scheduler Factory
Centralizes wiring of settings, clock and random source into a Scheduler.
"""

from anamnesis.application.config import AppConfig
from anamnesis.application.scheduler import Scheduler
from anamnesis.domain.scheduling.models import Card, DeckConfig
from anamnesis.domain.scheduling.ports import Clock, RandomSource
from anamnesis.infrastructure.clock import SystemClock
from anamnesis.infrastructure.random_source import PythonRandomSource


def build_scheduler(
    card: Card,
    config: AppConfig,
    deck: DeckConfig | None = None,
    clock: Clock | None = None,
    rng: RandomSource | None = None,
) -> Scheduler:
    """
    Returns a Scheduler for `card` using the resolved settings.

    Explicit `deck`, `clock` or `rng` arguments replace the ones derived
    from settings (tests pass fixed collaborators here).
    """
    if clock is None:
        clock = SystemClock(
            utc_offset_minutes=config.utc_offset_minutes,
            rollover_hour=config.rollover_hour,
        )
    if rng is None:
        rng = PythonRandomSource(seed=config.seed)
    return Scheduler(card, deck or config.deck.to_domain(), clock, rng)
