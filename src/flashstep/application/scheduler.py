"""
Step-based spaced-repetition scheduler.

Maps (card, rating, now) to the card's next scheduling state. This is a pure
computation module with no I/O: the only notion of time is the `now` passed in.

Policy per rating, for a card at step `s`:
- Again: step max(s - 1, 0), fixed short re-check interval.
- Hard:  step max(s, 1) (hold), a fraction of that step's interval.
- Good:  step s + 1, that step's interval.
- Easy:  step s + 2, that step's interval times a bonus.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from flashstep.domain.constants import (
    AGAIN_INTERVAL_MINUTES,
    EASY_BONUS,
    EASY_STEP_SKIP,
    HARD_FACTOR,
    MAX_INTERVAL_DAYS,
    STEP_INTERVALS_DAYS,
)
from flashstep.domain.errors import ContractViolation
from flashstep.domain.models import Card, Rating, ScheduleUpdate, derive_status

logger = logging.getLogger(__name__)

__all__ = [
    "SchedulingPolicy",
    "Scheduler",
    "apply_rating",
    "derive_status",
    "format_interval",
    "is_mastered",
    "preview_intervals",
]


@dataclass(frozen=True)
class SchedulingPolicy:
    """
    Tunable interval table.

    Attributes:
        step_intervals_days: Interval (days) for each learning step; steps past
            the end reuse the last entry. Must be non-decreasing.
        again_interval: Re-check interval after Again. Shortest of all ratings.
        hard_factor: Fraction of the held step's interval used for Hard, in (0, 1].
        easy_bonus: Multiplier applied on top of the Easy step's interval, >= 1.
        easy_step_skip: Steps advanced by Easy (Good advances one).
        max_interval_days: Upper bound for any interval.
    """

    step_intervals_days: tuple[float, ...] = STEP_INTERVALS_DAYS
    again_interval: timedelta = timedelta(minutes=AGAIN_INTERVAL_MINUTES)
    hard_factor: float = HARD_FACTOR
    easy_bonus: float = EASY_BONUS
    easy_step_skip: int = EASY_STEP_SKIP
    max_interval_days: float = MAX_INTERVAL_DAYS

    def __post_init__(self):
        table = tuple(self.step_intervals_days)
        object.__setattr__(self, "step_intervals_days", table)

        if not table:
            raise ValueError("step_intervals_days must not be empty")
        if any(d < 0 for d in table):
            raise ValueError("step_intervals_days must not contain negative values")
        if any(b < a for a, b in zip(table, table[1:])):
            raise ValueError("step_intervals_days must be non-decreasing")
        if self.again_interval < timedelta(0):
            raise ValueError("again_interval must not be negative")
        if not 0 < self.hard_factor <= 1:
            raise ValueError("hard_factor must be in (0, 1]")
        if self.easy_bonus < 1:
            raise ValueError("easy_bonus must be >= 1")
        if self.easy_step_skip < 2:
            raise ValueError("easy_step_skip must be >= 2")
        if self.max_interval_days * 86400 < self.again_interval.total_seconds():
            raise ValueError("max_interval_days must not be shorter than again_interval")

    def step_interval(self, step: int) -> timedelta:
        """Base interval for a learning step, clamped to the table and the cap."""
        days = self.step_intervals_days[min(step, len(self.step_intervals_days) - 1)]
        return self._cap(timedelta(days=days))

    def _cap(self, interval: timedelta) -> timedelta:
        return min(interval, timedelta(days=self.max_interval_days))


class Scheduler:
    """
    Applies ratings to cards under a SchedulingPolicy.

    Stateless and side-effect free.
    """

    def __init__(self, policy: SchedulingPolicy | None = None):
        self.policy = policy or SchedulingPolicy()

    def next_state(self, learning_step: int, rating: Rating) -> tuple[int, timedelta]:
        """
        Compute (new learning step, interval) for a step and a rating.

        Every public operation goes through here, so previews and real
        updates cannot diverge.
        """
        if learning_step < 0:
            raise ContractViolation(f"learning_step must be >= 0, got {learning_step}")
        rating = Rating.coerce(rating)
        p = self.policy

        if rating is Rating.AGAIN:
            return max(learning_step - 1, 0), p._cap(p.again_interval)

        if rating is Rating.HARD:
            step = max(learning_step, 1)
            interval = p.step_interval(step) * p.hard_factor
            return step, max(interval, p._cap(p.again_interval))

        if rating is Rating.GOOD:
            step = learning_step + 1
            return step, max(p.step_interval(step), p._cap(p.again_interval))

        step = learning_step + p.easy_step_skip
        interval = p._cap(p.step_interval(step) * p.easy_bonus)
        return step, max(interval, p._cap(p.again_interval))

    def apply_rating(self, card: Card, rating: Rating | int, now: datetime) -> ScheduleUpdate:
        """
        Rate a card and return its next scheduling state.

        Raises:
            InvalidRatingError: rating is not one of 1..4.
        """
        rating = Rating.coerce(rating)
        step, interval = self.next_state(card.learning_step, rating)

        logger.debug(
            f"Card {card.id}: {rating.name} step {card.learning_step} -> {step}, "
            f"next in {interval}"
        )

        return ScheduleUpdate(
            card_id=card.id,
            rating=rating,
            previous_learning_step=card.learning_step,
            learning_step=step,
            interval=interval,
            next_review_date=now + interval,
            last_review_date=now,
        )

    def preview_intervals(self, card: Card, now: datetime) -> dict[Rating, timedelta]:
        """
        Interval each rating would produce, without touching the card.

        `now` is accepted for symmetry with apply_rating; intervals do not
        depend on it.
        """
        return {r: self.next_state(card.learning_step, r)[1] for r in Rating}


_default_scheduler = Scheduler()


def apply_rating(card: Card, rating: Rating | int, now: datetime) -> ScheduleUpdate:
    """Rate a card with the default policy."""
    return _default_scheduler.apply_rating(card, rating, now)


def preview_intervals(card: Card, now: datetime) -> dict[Rating, timedelta]:
    """Preview intervals for every rating with the default policy."""
    return _default_scheduler.preview_intervals(card, now)


def is_mastered(card: Card, now: datetime) -> bool:
    """Shared definition of "mastered": the next review lies in the future."""
    return card.is_mastered(now)


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def format_interval(interval: timedelta) -> str:
    """
    Render an interval for display.

    Under a day shows minutes, under a week days, under a month weeks,
    under a year months, otherwise years.
    """
    days = interval.total_seconds() / 86400.0
    if days < 1:
        return f"{round(days * 24 * 60)} min"
    if days < 7:
        return _plural(round(days), "day")
    if days < 30:
        return _plural(round(days / 7), "week")
    if days < 365:
        return _plural(round(days / 30), "month")
    return _plural(round(days / 365), "year")
