"""
Scheduler: SM-2 card state machine.

Given one card, a deck config and the current study day, decides the card's
next state (type, queue, due, interval, ease) for each answer, and exposes
manual overrides plus a non-mutating preview.

This is a pure computation module: time and randomness come in through the
Clock and RandomSource ports.
"""

import logging

from anamnesis.application.fuzz import fuzz_interval
from anamnesis.application.time_format import format_time_span
from anamnesis.domain.constants import (
    DEFAULT_STEP_DELAY_MINUTES,
    EASE_DELTA_EASY,
    EASE_DELTA_HARD,
    EASE_DELTA_OK,
    LAPSE_EASE_PENALTY,
    LEARN_JITTER_MAX_SECONDS,
    LEARN_JITTER_RATIO,
    MINIMUM_EASE_FACTOR,
    SECONDS_PER_DAY,
    SECONDS_PER_MINUTE,
    STEP_PACKING,
)
from anamnesis.domain.errors import InvalidRange
from anamnesis.domain.scheduling.models import (
    OVERLAY_QUEUES,
    Card,
    CardQueue,
    CardState,
    CardType,
    Choice,
    DeckConfig,
)
from anamnesis.domain.scheduling.ports import Clock, RandomSource

logger = logging.getLogger(__name__)

EASE_DELTAS = {
    Choice.HARD: EASE_DELTA_HARD,
    Choice.OK: EASE_DELTA_OK,
    Choice.EASY: EASE_DELTA_EASY,
}

LEARNING_QUEUES = (CardQueue.LEARN, CardQueue.DAY_LEARN)


class Scheduler:
    """
    Schedules a single card for one study day.

    The card is mutated in place. The config and day context are read-only
    for the lifetime of the instance; callers sharing a card across threads
    must serialize access themselves.
    """

    def __init__(
        self,
        card: Card,
        config: DeckConfig,
        clock: Clock,
        rng: RandomSource,
        day_cut_off: int | None = None,
    ):
        """
        Args:
            card: The card to schedule.
            config: Deck options.
            clock: Source of "now" (and of the cutoff when none is given).
            rng: Random source for fuzzing and learn-step jitter.
            day_cut_off: Timestamp of the next day rollover; read from the clock if omitted.
        """
        self.card = card
        self.config = config
        self.clock = clock
        self.rng = rng
        self.day_cut_off = clock.day_cut_off() if day_cut_off is None else day_cut_off
        self.day_today = self.day_cut_off // SECONDS_PER_DAY

    # ------------------------------------------------------------------
    # Answering
    # ------------------------------------------------------------------

    def answer(self, choice: Choice) -> None:
        """Record the learner's answer and move the card to its next state."""
        choice = Choice(choice)
        card = self.card
        card.reps += 1

        if card.card_queue in OVERLAY_QUEUES:
            logger.debug(f"Ignoring {choice.name} on {card.card_queue.name.lower()} card")
            return

        if card.card_queue == CardQueue.NEW:
            card.move_to(CardState.LEARNING)
            card.remaining_steps = self._start_remaining_steps()

        if card.card_queue in LEARNING_QUEUES:
            self._answer_learn_card(choice)
        elif card.card_queue == CardQueue.REVIEW:
            self._answer_review_card(choice)

    def _answer_learn_card(self, choice: Choice) -> None:
        if not self._steps():
            self._reschedule_as_review(early=choice == Choice.EASY)
            return

        if choice == Choice.EASY:
            self._reschedule_as_review(early=True)
        elif choice == Choice.OK:
            if self.card.steps_left <= 1:
                self._reschedule_as_review(early=False)
            else:
                self._move_to_next_step()
        elif choice == Choice.HARD:
            self._repeat_step()
        else:
            self._move_to_first_step()

    def _answer_review_card(self, choice: Choice) -> None:
        if choice == Choice.AGAIN:
            self._reschedule_lapse()
        else:
            self._reschedule_review(choice)

    # ------------------------------------------------------------------
    # Learning steps
    # ------------------------------------------------------------------

    def _steps(self) -> tuple[float, ...]:
        # A card waiting in the new queue restarts as a learning card.
        card = self.card
        if card.card_type == CardType.RELEARN and card.card_queue != CardQueue.NEW:
            return self.config.relearn_steps
        return self.config.learn_steps

    def _start_remaining_steps(self) -> int:
        steps = self._steps()
        total = len(steps)
        return total + self._remaining_today(steps, total) * STEP_PACKING

    def _remaining_today(self, steps: tuple[float, ...], remaining: int) -> int:
        """Count how many of the last `remaining` steps can be done before the cutoff."""
        if remaining <= 0:
            return 0

        at = self.clock.now()
        achievable = 0
        for delay in steps[len(steps) - remaining :]:
            at += int(delay * SECONDS_PER_MINUTE)
            if at > self.day_cut_off:
                break
            achievable += 1
        return achievable

    def _move_to_next_step(self) -> None:
        left = self.card.steps_left - 1
        self.card.remaining_steps = (
            self._remaining_today(self._steps(), left) * STEP_PACKING + left
        )
        self._reschedule_learn_card(self._delay_for_grade(left))

    def _repeat_step(self) -> None:
        self._reschedule_learn_card(self._delay_for_repeating_grade(self.card.steps_left))

    def _move_to_first_step(self) -> None:
        self.card.remaining_steps = self._start_remaining_steps()
        if self.card.card_type == CardType.RELEARN:
            self.card.interval = self._lapse_interval()
        self._reschedule_learn_card(self._delay_for_grade(self.card.steps_left))

    def _delay_for_grade(self, left: int) -> int:
        """Delay in seconds of the step reached when `left` steps remain."""
        steps = self._steps()
        if not steps:
            return int(DEFAULT_STEP_DELAY_MINUTES * SECONDS_PER_MINUTE)

        left = min(max(left % STEP_PACKING, 1), len(steps))
        return int(steps[-left] * SECONDS_PER_MINUTE)

    def _delay_for_repeating_grade(self, left: int) -> int:
        """Hard on a learning card: halfway between this step and the next one."""
        delay1 = self._delay_for_grade(left)
        if left % STEP_PACKING > 1:
            delay2 = self._delay_for_grade(left - 1)
        else:
            delay2 = delay1 * 2
        return (delay1 + max(delay1, delay2)) // 2

    def _reschedule_learn_card(self, delay: int) -> None:
        card = self.card
        due = self.clock.now() + delay

        if due < self.day_cut_off:
            max_extra = min(LEARN_JITTER_MAX_SECONDS, int(delay * LEARN_JITTER_RATIO))
            jitter = self.rng.uniform(0, max(1, max_extra))
            card.due = min(self.day_cut_off - 1, due + jitter)
            day_learn = False
        else:
            ahead = (due - self.day_cut_off) // SECONDS_PER_DAY + 1
            card.due = self.day_today + ahead
            day_learn = True

        if card.card_type == CardType.RELEARN:
            card.move_to(CardState.DAY_RELEARNING if day_learn else CardState.RELEARNING)
        else:
            card.move_to(CardState.DAY_LEARNING if day_learn else CardState.LEARNING)
        logger.debug(f"Learning step scheduled: queue={card.card_queue.name} due={card.due}")

    # ------------------------------------------------------------------
    # Graduation
    # ------------------------------------------------------------------

    def _reschedule_as_review(self, early: bool) -> None:
        card = self.card
        card.interval = self._graduating_interval(early, fuzzy=True)
        card.due = self.day_today + card.interval
        if not card.ease_factor:
            card.ease_factor = self.config.initial_ease
        card.move_to(CardState.REVIEW)
        logger.debug(f"Card graduated: interval={card.interval} early={early}")

    def _graduating_interval(self, early: bool, fuzzy: bool) -> int:
        card = self.card
        was_reviewed = card.card_type in (CardType.REVIEW, CardType.RELEARN)
        if was_reviewed and card.card_queue != CardQueue.NEW:
            return card.interval + (1 if early else 0)

        if early:
            ideal = self.config.graduating_interval_easy
        else:
            ideal = self.config.graduating_interval_good

        if fuzzy:
            return fuzz_interval(ideal, self.rng)
        return ideal

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def _reschedule_review(self, choice: Choice) -> None:
        card = self.card
        card.interval = self._next_review_interval(choice, fuzzy=True)
        card.ease_factor = max(MINIMUM_EASE_FACTOR, card.ease_factor + EASE_DELTAS[choice])
        card.due = self.day_today + card.interval
        logger.debug(f"Review {choice.name}: interval={card.interval} ease={card.ease_factor}")

    def _next_review_interval(self, choice: Choice, fuzzy: bool) -> int:
        """
        Interval after a successful review.

        Each harder answer's result is the floor for the next easier one, so
        Easy > Ok > Hard always holds.
        """
        card = self.card
        factor = card.ease_factor / 1000
        delay = self._days_late()

        hard_factor = self.config.hard_multiplier
        hard_min = card.interval if hard_factor > 1 else 0
        interval = self._constrain_interval(card.interval * hard_factor, hard_min, fuzzy)
        if choice == Choice.HARD:
            return interval

        interval = self._constrain_interval(
            (card.interval + delay / 2) * factor, interval, fuzzy
        )
        if choice == Choice.OK:
            return interval

        return self._constrain_interval(
            (card.interval + delay) * factor * self.config.easy_multiplier, interval, fuzzy
        )

    def _constrain_interval(self, interval: float, previous: int, fuzzy: bool) -> int:
        value = int(interval * self.config.interval_multiplier)
        if fuzzy:
            value = fuzz_interval(value, self.rng)
        value = max(value, previous + 1, 1)
        return min(value, self.config.maximum_review_interval)

    def _days_late(self) -> int:
        return max(0, self.day_today - self.card.due)

    # ------------------------------------------------------------------
    # Lapses
    # ------------------------------------------------------------------

    def _reschedule_lapse(self) -> None:
        card = self.card
        card.lapses += 1
        card.ease_factor = max(MINIMUM_EASE_FACTOR, card.ease_factor - LAPSE_EASE_PENALTY)

        leeched = self._check_leech(card.lapses)
        if leeched:
            card.card_queue = CardQueue.SUSPENDED
            logger.info(f"Card became a leech after {card.lapses} lapses; suspended")

        if self.config.relearn_steps and not leeched:
            card.move_to(CardState.RELEARNING)
            self._move_to_first_step()
            return

        card.interval = self._lapse_interval()
        self._reschedule_as_review(early=False)
        if leeched:
            card.card_queue = CardQueue.SUSPENDED

    def _lapse_interval(self) -> int:
        return max(
            1,
            self.config.minimum_review_interval,
            int(self.card.interval * self.config.lapse_multiplier),
        )

    def _check_leech(self, lapses: int) -> bool:
        """Leech at the threshold, then again every half-threshold lapses."""
        threshold = self.config.leech_threshold
        if threshold <= 0:
            return False
        return lapses >= threshold and (lapses - threshold) % max(threshold // 2, 1) == 0

    # ------------------------------------------------------------------
    # Manual overrides
    # ------------------------------------------------------------------

    def bury(self) -> None:
        self.card.card_queue = CardQueue.BURIED

    def unbury(self) -> None:
        self.card.card_queue = CardQueue.NEW

    def suspend(self) -> None:
        self.card.card_queue = CardQueue.SUSPENDED

    def unsuspend(self) -> None:
        """Put the card back in the queue its type implies."""
        card = self.card
        if card.card_type == CardType.NEW:
            card.card_queue = CardQueue.NEW
        elif card.card_type == CardType.REVIEW:
            card.card_queue = CardQueue.REVIEW
        elif card.due_is_timestamp():
            card.card_queue = CardQueue.LEARN
        else:
            card.card_queue = CardQueue.DAY_LEARN

    def schedule_as_new(self, position: int) -> None:
        """Forget the card's progress and put it back in the new queue at `position`."""
        card = self.card
        card.move_to(CardState.NEW)
        card.interval = 0
        card.due = position
        card.ease_factor = self.config.initial_ease

    def schedule_as_review(self, min_days: int, max_days: int) -> None:
        """
        Make the card a review card due in a random number of days.

        Args:
            min_days: Smallest allowed delay in days.
            max_days: Largest allowed delay in days (inclusive).

        Raises:
            InvalidRange: If the bounds are negative or reversed.
        """
        if min_days < 0 or min_days > max_days:
            raise InvalidRange(min_days, max_days)

        card = self.card
        days = self.rng.uniform(min_days, max_days)
        card.interval = max(1, days)
        card.due = self.day_today + days
        if not card.ease_factor:
            card.ease_factor = self.config.initial_ease
        card.move_to(CardState.REVIEW)
        logger.debug(f"Rescheduled as review in {days} days")

    # Names used by host bindings.
    answer_card = answer
    bury_card = bury
    unbury_card = unbury
    suspend_card = suspend
    unsuspend_card = unsuspend
    schedule_card_as_new = schedule_as_new
    schedule_card_as_review = schedule_as_review

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def next_interval(self, choice: Choice) -> int:
        """
        Seconds until the card would be due after `choice`, without changing it.

        Fuzz and learn-step jitter are left out so the preview is stable.
        """
        choice = Choice(choice)
        card = self.card

        if card.card_queue in OVERLAY_QUEUES:
            return 0
        if card.card_queue == CardQueue.NEW or card.card_queue in LEARNING_QUEUES:
            return self._next_learn_interval(choice)

        if choice == Choice.AGAIN:
            # a lapse that makes a leech skips relearning
            if self.config.relearn_steps and not self._check_leech(card.lapses + 1):
                return int(self.config.relearn_steps[0] * SECONDS_PER_MINUTE)
            return self._lapse_interval() * SECONDS_PER_DAY
        return self._next_review_interval(choice, fuzzy=False) * SECONDS_PER_DAY

    def next_interval_string(self, choice: Choice) -> str:
        return format_time_span(self.next_interval(choice))

    def _next_learn_interval(self, choice: Choice) -> int:
        steps = self._steps()
        if self.card.card_queue == CardQueue.NEW:
            left = len(steps)
        else:
            left = self.card.steps_left

        if not steps or choice == Choice.EASY:
            early = choice == Choice.EASY
            return self._graduating_interval(early, fuzzy=False) * SECONDS_PER_DAY
        if choice == Choice.AGAIN:
            return self._delay_for_grade(len(steps))
        if choice == Choice.HARD:
            return self._delay_for_repeating_grade(left)

        if left <= 1:
            return self._graduating_interval(False, fuzzy=False) * SECONDS_PER_DAY
        return self._delay_for_grade(left - 1)
