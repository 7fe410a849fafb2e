"""
Study Session Service: Application layer orchestrator.

Coordinates loading a card pool from the store, slicing a queue or phase
batch, rating answered cards through the scheduler, persisting the updates
and summarizing the session. Session state lives in an explicit
StudySession object owned by the caller; nothing is kept globally.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from flashstep.application.id_service import generate_session_id
from flashstep.application.phase_batcher import next_batch, open_phase, resolve_batch
from flashstep.application.pool import restrict_to_ids, study_all
from flashstep.application.queue_builder import build_queue
from flashstep.application.scheduler import Scheduler
from flashstep.domain.constants import (
    DEFAULT_DAILY_NEW_LIMIT,
    DEFAULT_DAILY_REVIEW_LIMIT,
    MIN_SESSION_SECONDS,
)
from flashstep.domain.errors import ContractViolation
from flashstep.domain.models import (
    Batch,
    Card,
    Phase,
    Rating,
    ReviewLogEntry,
    ScheduleUpdate,
)
from flashstep.domain.ports import CardStore

logger = logging.getLogger(__name__)


class StudyMode(str, Enum):
    FLASHCARDS = "flashcards"
    MULTIPLE_CHOICE = "multiple_choice"
    MATCH = "match"
    WORD_BUILDER = "word_builder"
    AUDIO = "audio"


def rating_for_answer(mode: StudyMode, correct: bool) -> Rating:
    """
    Map a right/wrong answer to a rating for modes without rating buttons.

    Flashcards mode lets the learner pick the rating, so it has no mapping.
    """
    if mode is StudyMode.FLASHCARDS:
        raise ContractViolation("Flashcards mode takes an explicit rating")
    return Rating.GOOD if correct else Rating.HARD


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StudySession:
    """
    One batch being studied.

    `phase` is None for daily-queue and study-all sessions, which are
    single-shot.
    """

    session_id: str
    mode: StudyMode
    batch: Batch
    started_at: datetime
    pool_ids: list[str]
    phase: Phase | None = None
    updates: dict[str, ScheduleUpdate] = field(default_factory=dict)
    reviews: list[ReviewLogEntry] = field(default_factory=list)
    last_answer_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return self.batch.is_empty

    @property
    def current_card(self) -> Card | None:
        for card in self.batch.cards:
            if card.id not in self.updates:
                return card
        return None

    @property
    def is_complete(self) -> bool:
        return len(self.updates) == len(self.batch)

    @property
    def correct_count(self) -> int:
        return sum(1 for u in self.updates.values() if u.is_correct)

    @property
    def wrong_ids(self) -> list[str]:
        return [cid for cid, u in self.updates.items() if not u.is_correct]

    def progress(self) -> tuple[int, int, int]:
        """(answered, total, percentage) for progress bars."""
        total = len(self.batch)
        done = len(self.updates)
        percentage = round(done / total * 100) if total else 0
        return done, total, percentage


@dataclass
class SessionResult:
    """End-of-session summary read by statistics and reporting."""

    session_id: str
    mode: StudyMode
    total_cards: int
    learned_cards: int
    errors: int
    wrong_ids: list[str]
    time_spent_seconds: int
    pool_ids: list[str]
    phase: Phase | None = None

    @property
    def phase_finished(self) -> bool:
        return self.phase is None or self.phase.is_finished


class StudySessionService:
    """
    Application service driving study sessions against a CardStore.

    Follows Dependency Inversion: depends on the CardStore abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        store: CardStore,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            store: The repository (port) for reading and saving cards.
            scheduler: Optional custom scheduler; uses the default policy if not provided.
            clock: Returns the current instant; defaults to UTC wall-clock time.
        """
        self._store = store
        self._scheduler = scheduler or Scheduler()
        self._clock = clock or _utcnow

    def _new_session(
        self,
        mode: StudyMode,
        batch: Batch,
        pool_ids: list[str],
        phase: Phase | None = None,
    ) -> StudySession:
        return StudySession(
            session_id=generate_session_id(),
            mode=mode,
            batch=batch,
            started_at=self._clock(),
            pool_ids=pool_ids,
            phase=phase,
        )

    async def start_daily(
        self,
        mode: StudyMode = StudyMode.FLASHCARDS,
        card_ids: list[str] | None = None,
        daily_new_limit: int = DEFAULT_DAILY_NEW_LIMIT,
        daily_review_limit: int = DEFAULT_DAILY_REVIEW_LIMIT,
        shuffle: bool = True,
        rng: random.Random | None = None,
    ) -> StudySession:
        """
        Start a session from today's queue (due reviews plus new cards).

        An empty session means there is nothing to study today.
        """
        now = self._clock()
        pool = await self._store.get_cards(card_ids)
        result = build_queue(pool, daily_new_limit, daily_review_limit, now, shuffle, rng)
        cards = restrict_to_ids(pool, result.queue)
        return self._new_session(mode, Batch(cards=tuple(cards)), [c.id for c in pool])

    async def start_study_all(
        self,
        mode: StudyMode = StudyMode.FLASHCARDS,
        card_ids: list[str] | None = None,
        card_limit: int | None = None,
        only_unmastered: bool = False,
        rng: random.Random | None = None,
    ) -> StudySession:
        """Start a one-shot session over the whole set, ignoring due dates."""
        now = self._clock()
        pool = await self._store.get_cards(card_ids)
        cards = study_all(pool, now, card_limit, only_unmastered, rng)
        return self._new_session(mode, Batch(cards=tuple(cards)), [c.id for c in pool])

    async def start_phase(
        self,
        mode: StudyMode = StudyMode.FLASHCARDS,
        card_ids: list[str] | None = None,
        card_limit: int | None = None,
        phase: Phase | None = None,
        only_unmastered: bool = False,
        shuffle: bool = True,
        rng: random.Random | None = None,
    ) -> StudySession:
        """
        Start the next batch of a phase, opening a new phase if none is inherited.

        The pool must keep its order across batches of one phase: when
        resuming, pass the `pool_ids` of the previous SessionResult as
        `card_ids`. `only_unmastered` only applies when opening a phase.
        """
        now = self._clock()
        pool = await self._store.get_cards(card_ids)

        if phase is None:
            if only_unmastered:
                pool = [c for c in pool if not c.is_mastered(now)]
            phase = open_phase(pool)
            order = [c.id for c in pool]
        elif card_ids is not None:
            # Deleted cards must keep their slot so phase_offset stays aligned
            order = list(dict.fromkeys(card_ids))
        else:
            order = [c.id for c in pool]

        batch = next_batch(pool, phase, card_limit, now, shuffle, rng, order=order)
        return self._new_session(mode, batch, order, phase)

    async def answer(
        self, session: StudySession, card_id: str, rating: Rating | int
    ) -> ScheduleUpdate:
        """
        Rate one card of the session and persist the new scheduling state.

        Raises:
            ContractViolation: The card is not in the batch or was already answered.
            InvalidRatingError: rating is not one of 1..4.
        """
        rating = Rating.coerce(rating)
        card = next((c for c in session.batch.cards if c.id == card_id), None)
        if card is None:
            raise ContractViolation(f"Card {card_id} is not part of session {session.session_id}")
        if card_id in session.updates:
            raise ContractViolation(f"Card {card_id} was already answered in this session")

        now = self._clock()
        update = self._scheduler.apply_rating(card, rating, now)
        await self._store.save_update(update)

        shown_at = session.last_answer_at or session.started_at
        session.updates[card_id] = update
        session.reviews.append(
            ReviewLogEntry(
                card_id=card_id,
                rating=rating,
                reviewed_at=now,
                time_taken=max(now - shown_at, timedelta(0)),
                previous_learning_step=update.previous_learning_step,
                new_learning_step=update.learning_step,
            )
        )
        session.last_answer_at = now
        return update

    def finish(self, session: StudySession) -> SessionResult:
        """
        Close a fully answered session and resolve its phase.

        Abandoned sessions are simply never finished; nothing is committed
        to the phase until this is called.
        """
        if not session.is_complete:
            raise ContractViolation(
                f"Session {session.session_id} has "
                f"{len(session.batch) - len(session.updates)} unanswered cards"
            )

        wrong_ids = session.wrong_ids
        correct = session.correct_count

        phase = None
        if session.phase is not None:
            phase = resolve_batch(
                session.phase,
                session.batch,
                wrong_ids,
                correct,
                session.batch.pending_in_batch,
            )

        elapsed = (self._clock() - session.started_at).total_seconds()
        result = SessionResult(
            session_id=session.session_id,
            mode=session.mode,
            total_cards=len(session.batch),
            learned_cards=correct,
            errors=len(wrong_ids),
            wrong_ids=wrong_ids,
            time_spent_seconds=max(MIN_SESSION_SECONDS, round(elapsed)),
            pool_ids=session.pool_ids,
            phase=phase,
        )
        logger.info(
            f"Session {session.session_id} finished: {result.learned_cards}/"
            f"{result.total_cards} correct in {result.time_spent_seconds}s"
        )
        return result
