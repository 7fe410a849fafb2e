"""
Domain models for study scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum, IntEnum
from typing import Any

from .constants import LEARNING_MAX_STEP, YOUNG_MAX_STEP
from .errors import ContractViolation, InvalidRatingError


class Rating(IntEnum):
    """Answer grade (1=Again, 2=Hard, 3=Good, 4=Easy)."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    @property
    def is_correct(self) -> bool:
        return self >= Rating.GOOD

    @classmethod
    def coerce(cls, value: Any) -> "Rating":
        """Validate an incoming rating value, raising on anything outside 1..4."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidRatingError(value)
        try:
            return cls(value)
        except ValueError:
            raise InvalidRatingError(value) from None


class CardStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    YOUNG = "young"
    MATURE = "mature"


def derive_status(learning_step: int) -> CardStatus:
    """
    Map a learning step to its display status.

    0 -> new, 1..2 -> learning, 3..4 -> young, >=5 -> mature.
    """
    if learning_step < 0:
        raise ContractViolation(f"learning_step must be >= 0, got {learning_step}")
    if learning_step == 0:
        return CardStatus.NEW
    if learning_step <= LEARNING_MAX_STEP:
        return CardStatus.LEARNING
    if learning_step <= YOUNG_MAX_STEP:
        return CardStatus.YOUNG
    return CardStatus.MATURE


@dataclass(frozen=True)
class Card:
    """
    Scheduling projection of a flashcard.

    Attributes:
        id: Stable card identifier.
        next_review_date: Instant before which the card is not due.
        learning_step: Progress counter; 0 means never successfully scheduled.
        last_review_date: Instant of the most recent rating, if any.
        front: Optional display text (not used by scheduling).
        back: Optional display text (not used by scheduling).
    """

    id: str
    next_review_date: datetime
    learning_step: int = 0
    last_review_date: datetime | None = None
    front: str | None = None
    back: str | None = None

    def __post_init__(self):
        if self.learning_step < 0:
            raise ContractViolation(
                f"Card {self.id}: learning_step must be >= 0, got {self.learning_step}"
            )

    @property
    def status(self) -> CardStatus:
        return derive_status(self.learning_step)

    @property
    def is_new(self) -> bool:
        return self.learning_step == 0

    def is_due(self, now: datetime) -> bool:
        return self.next_review_date <= now

    def is_mastered(self, now: datetime) -> bool:
        """A card is mastered while its next review lies in the future."""
        return self.next_review_date > now


@dataclass(frozen=True)
class ScheduleUpdate:
    """
    Outcome of rating a card: the new scheduling state to persist.

    `status` is derived from `learning_step`, never stored.
    """

    card_id: str
    rating: Rating
    previous_learning_step: int
    learning_step: int
    interval: timedelta
    next_review_date: datetime
    last_review_date: datetime

    @property
    def status(self) -> CardStatus:
        return derive_status(self.learning_step)

    @property
    def is_correct(self) -> bool:
        return self.rating.is_correct

    def apply_to(self, card: Card) -> Card:
        if card.id != self.card_id:
            raise ContractViolation(f"Update for {self.card_id} applied to card {card.id}")
        return replace(
            card,
            learning_step=self.learning_step,
            next_review_date=self.next_review_date,
            last_review_date=self.last_review_date,
        )


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    A single answered card within a session.

    Attributes:
        card_id: The card that was reviewed.
        rating: Button pressed (1=Again, 2=Hard, 3=Good, 4=Easy).
        reviewed_at: Instant of the answer.
        time_taken: Time spent on the card before answering.
        previous_learning_step: Step before the answer.
        new_learning_step: Step after the answer.
    """

    card_id: str
    rating: Rating
    reviewed_at: datetime
    time_taken: timedelta
    previous_learning_step: int
    new_learning_step: int


# Navigation payload keys, as forwarded between study screens.
_PAYLOAD_KEYS = {
    "phase_id": "phaseId",
    "total_phase_cards": "totalPhaseCards",
    "studied_in_phase": "studiedInPhase",
    "phase_offset": "phaseOffset",
    "phase_failed_ids": "phaseFailedIds",
}


@dataclass(frozen=True)
class Phase:
    """
    One logical, possibly multi-batch pass over a fixed card pool.

    Caller-owned and passed by value between batches. `phase_failed_ids` keeps
    insertion order (pending cards are re-presented in that order) but holds
    each ID at most once.
    """

    phase_id: str
    total_phase_cards: int
    studied_in_phase: int = 0
    phase_offset: int = 0
    phase_failed_ids: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        for name in ("total_phase_cards", "studied_in_phase", "phase_offset"):
            if getattr(self, name) < 0:
                raise ContractViolation(f"Phase.{name} must be >= 0")
        object.__setattr__(
            self, "phase_failed_ids", tuple(dict.fromkeys(self.phase_failed_ids))
        )

    @property
    def is_finished(self) -> bool:
        return self.studied_in_phase >= self.total_phase_cards and not self.phase_failed_ids

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase payload forwarded between batches."""
        return {
            _PAYLOAD_KEYS["phase_id"]: self.phase_id,
            _PAYLOAD_KEYS["total_phase_cards"]: self.total_phase_cards,
            _PAYLOAD_KEYS["studied_in_phase"]: self.studied_in_phase,
            _PAYLOAD_KEYS["phase_offset"]: self.phase_offset,
            _PAYLOAD_KEYS["phase_failed_ids"]: list(self.phase_failed_ids),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Phase":
        """
        Rebuild a phase from a forwarded payload.

        Accepts camelCase or snake_case keys; counters default to 0.
        """
        if not isinstance(payload, dict):
            raise ContractViolation(
                f"Phase payload must be a mapping, got {type(payload).__name__}"
            )

        def pick(name: str, default: Any = None) -> Any:
            if _PAYLOAD_KEYS[name] in payload:
                return payload[_PAYLOAD_KEYS[name]]
            return payload.get(name, default)

        def counter(name: str, default: Any = None) -> int:
            value = pick(name, default)
            if value is None:
                value = default
            if isinstance(value, bool):
                raise ContractViolation(f"{_PAYLOAD_KEYS[name]} must be an integer")
            try:
                return int(value)
            except (TypeError, ValueError):
                raise ContractViolation(
                    f"{_PAYLOAD_KEYS[name]} must be an integer, got {value!r}"
                ) from None

        phase_id = pick("phase_id")
        if not phase_id or pick("total_phase_cards") is None:
            raise ContractViolation("Phase payload needs phaseId and totalPhaseCards")

        failed = pick("phase_failed_ids") or []
        if not isinstance(failed, list):
            raise ContractViolation("phaseFailedIds must be a list of card IDs")

        return cls(
            phase_id=str(phase_id),
            total_phase_cards=counter("total_phase_cards"),
            studied_in_phase=counter("studied_in_phase", 0),
            phase_offset=counter("phase_offset", 0),
            phase_failed_ids=tuple(str(i) for i in failed),
        )


@dataclass(frozen=True)
class Batch:
    """One bounded chunk of cards presented within a phase."""

    cards: tuple[Card, ...]
    pending_in_batch: int = 0
    # IDs of deleted cards the batch passed over: fresh ones and failed ones
    skipped_ids: tuple[str, ...] = ()
    stale_ids: tuple[str, ...] = ()

    @property
    def card_ids(self) -> list[str]:
        return [c.id for c in self.cards]

    @property
    def is_empty(self) -> bool:
        return not self.cards

    def __len__(self) -> int:
        return len(self.cards)
