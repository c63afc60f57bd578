"""Domain errors raised by the scheduler on caller-input violations."""


class SchedulingError(Exception):
    """Base class for every error raised by anamnesis."""


class InvalidRange(ValueError, SchedulingError):
    """A day range that is negative or whose lower bound exceeds its upper bound."""

    def __init__(self, min_days: int, max_days: int):
        self.min_days = min_days
        self.max_days = max_days
        super().__init__(f"Invalid interval range: [{min_days}, {max_days}]")


class InvalidCardState(ValueError, SchedulingError):
    """A (card_type, card_queue) pair the state machine can never produce."""
