"""
Domain models for SM-2 scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum

from anamnesis.domain.constants import (
    DEFAULT_LEARN_STEPS,
    DEFAULT_LEECH_THRESHOLD,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_RELEARN_STEPS,
    INITIAL_EASE_FACTOR,
    STEP_PACKING,
    TIMESTAMP_THRESHOLD,
)
from anamnesis.domain.errors import InvalidCardState


class Choice(IntEnum):
    """Button pressed by the learner."""

    AGAIN = 1
    HARD = 2
    OK = 3
    EASY = 4


class CardType(IntEnum):
    """Long-term stage of a card."""

    NEW = 0
    LEARN = 1
    REVIEW = 2
    RELEARN = 3


class CardQueue(IntEnum):
    """
    Short-term scheduling bucket. Decides how `Card.due` is read:

    - NEW: insertion-order position.
    - LEARN: unix timestamp (seconds).
    - REVIEW / DAY_LEARN: day number.
    - SUSPENDED / BURIED: not due; `due` keeps its previous meaning.
    """

    BURIED = -2
    SUSPENDED = -1
    NEW = 0
    LEARN = 1
    REVIEW = 2
    DAY_LEARN = 3


OVERLAY_QUEUES = frozenset({CardQueue.SUSPENDED, CardQueue.BURIED})


class CardState(Enum):
    """Every (card_type, card_queue) pair the scheduler can move a card into."""

    NEW = (CardType.NEW, CardQueue.NEW)
    LEARNING = (CardType.LEARN, CardQueue.LEARN)
    DAY_LEARNING = (CardType.LEARN, CardQueue.DAY_LEARN)
    REVIEW = (CardType.REVIEW, CardQueue.REVIEW)
    RELEARNING = (CardType.RELEARN, CardQueue.LEARN)
    DAY_RELEARNING = (CardType.RELEARN, CardQueue.DAY_LEARN)

    @property
    def card_type(self) -> CardType:
        return self.value[0]

    @property
    def card_queue(self) -> CardQueue:
        return self.value[1]


_STATE_BY_PAIR = {state.value: state for state in CardState}


def is_legal_pair(card_type: CardType, card_queue: CardQueue) -> bool:
    """
    Check whether a (type, queue) pair can exist.

    Overlay queues (suspended, buried) sit on top of any type, and an
    unburied card waits in the new queue whatever its type.
    """
    if card_queue in OVERLAY_QUEUES or card_queue == CardQueue.NEW:
        return True
    return (card_type, card_queue) in _STATE_BY_PAIR


@dataclass
class Card:
    """
    Scheduling state of one learning item.

    Attributes:
        card_type: Long-term stage (new, learn, review, relearn).
        card_queue: Short-term bucket; governs how `due` is interpreted.
        due: Position, timestamp or day number depending on `card_queue`.
        interval: Last graduated/review interval in days (0 when never reviewed).
        ease_factor: Permille ease (2500 = 250%); 0 until first graduation.
        reps: Number of answers ever given.
        lapses: Number of Again answers given while in review.
        remaining_steps: steps left + steps achievable before the cutoff * 1000.
    """

    card_type: CardType = CardType.NEW
    card_queue: CardQueue = CardQueue.NEW
    due: int = 0
    interval: int = 0
    ease_factor: int = 0
    reps: int = 0
    lapses: int = 0
    remaining_steps: int = 0

    def __post_init__(self) -> None:
        try:
            self.card_type = CardType(self.card_type)
            self.card_queue = CardQueue(self.card_queue)
        except ValueError as e:
            raise InvalidCardState(str(e)) from e
        if not is_legal_pair(self.card_type, self.card_queue):
            raise InvalidCardState(
                f"Illegal card state: type={self.card_type.name}, queue={self.card_queue.name}"
            )

    @classmethod
    def new(cls, position: int = 0) -> "Card":
        """Create a new card shown at `position` in the new queue."""
        return cls(due=position)

    @property
    def state(self) -> CardState | None:
        """Current scheduling state, or None while an overlay queue is active."""
        return _STATE_BY_PAIR.get((self.card_type, self.card_queue))

    def move_to(self, state: CardState) -> None:
        self.card_type, self.card_queue = state.value

    @property
    def steps_left(self) -> int:
        return self.remaining_steps % STEP_PACKING

    @property
    def steps_today(self) -> int:
        return self.remaining_steps // STEP_PACKING

    def due_is_timestamp(self) -> bool:
        return self.due > TIMESTAMP_THRESHOLD

    def set_new_position(self, position: int) -> None:
        """Move a card within the new queue. Ignored once the card has been studied."""
        if self.state is not CardState.NEW:
            return
        self.due = position


class NewCardOrder(IntEnum):
    DUE = 0
    RANDOM = 1


@dataclass(frozen=True)
class DeckConfig:
    """
    Tunable policy for one scheduling profile.

    `new_per_day`, `reviews_per_day`, `bury_new`, `bury_reviews`,
    `new_card_order`, `visible_time` and `cap_answer_time` are carried for
    the deck-level layer that picks which card to study; the scheduler
    never reads them.
    """

    learn_steps: tuple[float, ...] = DEFAULT_LEARN_STEPS
    relearn_steps: tuple[float, ...] = DEFAULT_RELEARN_STEPS

    cap_answer_time: int = 60
    visible_time: int = 0

    new_per_day: int = 20
    reviews_per_day: int = 200

    bury_new: bool = False
    bury_reviews: bool = False

    initial_ease: int = INITIAL_EASE_FACTOR

    easy_multiplier: float = 1.3
    hard_multiplier: float = 1.2
    lapse_multiplier: float = 0.0
    interval_multiplier: float = 1.0

    maximum_review_interval: int = DEFAULT_MAXIMUM_INTERVAL
    minimum_review_interval: int = 1

    graduating_interval_good: int = 1
    graduating_interval_easy: int = 4

    new_card_order: NewCardOrder = NewCardOrder.DUE
    leech_threshold: int = DEFAULT_LEECH_THRESHOLD

    def __post_init__(self) -> None:
        object.__setattr__(self, "learn_steps", tuple(float(s) for s in self.learn_steps))
        object.__setattr__(self, "relearn_steps", tuple(float(s) for s in self.relearn_steps))
        object.__setattr__(self, "new_card_order", NewCardOrder(self.new_card_order))
        # Accept the ratio form (2.5) as well as permille (2500).
        if 0 < self.initial_ease <= 10:
            object.__setattr__(self, "initial_ease", round(self.initial_ease * 1000))
        else:
            object.__setattr__(self, "initial_ease", int(self.initial_ease))
