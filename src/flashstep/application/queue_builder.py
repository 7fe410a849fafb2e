"""
Queue builder for daily study sessions.

Builds one session's queue by:
1. Splitting the pool into due review cards and new cards
2. Capping reviews at the daily limit, most overdue first
3. Capping new cards at the daily limit, in pool order
4. Merging (and optionally shuffling) the two sets
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime

from flashstep.application.pool import dedupe, due_filter, new_filter
from flashstep.domain.errors import ContractViolation
from flashstep.domain.models import Card

logger = logging.getLogger(__name__)


@dataclass
class QueueBuildResult:
    """Result of queue building operation."""

    queue: list[str]  # Ordered card IDs to study
    selected_due: list[str]  # Review cards kept, most overdue first
    selected_new: list[str]  # New cards kept, pool order
    due_total: int  # Review cards due before capping
    new_total: int  # New cards available before capping

    @property
    def is_empty(self) -> bool:
        """Nothing to study today. Not an error."""
        return not self.queue


def build_queue(
    pool: list[Card],
    daily_new_limit: int,
    daily_review_limit: int,
    now: datetime,
    shuffle: bool = True,
    rng: random.Random | None = None,
) -> QueueBuildResult:
    """
    Build today's study queue under daily caps.

    Args:
        pool: Candidate cards (usually one set).
        daily_new_limit: Maximum new cards in the queue.
        daily_review_limit: Maximum review cards in the queue.
        now: Reference instant for due checks.
        shuffle: Merge and shuffle both sets; otherwise reviews come first.
        rng: Random source for the shuffle.

    Returns:
        QueueBuildResult with the ordered queue and diagnostics.
    """
    if daily_new_limit < 0 or daily_review_limit < 0:
        raise ContractViolation(
            f"Daily limits must be >= 0, got new={daily_new_limit} "
            f"review={daily_review_limit}"
        )

    cards = dedupe(pool)
    new_cards = new_filter(cards)
    due_cards = [c for c in due_filter(cards, now) if not c.is_new]

    # Most overdue first; sort is stable so ties keep pool order
    due_cards.sort(key=lambda c: c.next_review_date)
    selected_due = due_cards[:daily_review_limit]
    selected_new = new_cards[:daily_new_limit]

    queue = [c.id for c in selected_due] + [c.id for c in selected_new]
    if shuffle:
        (rng or random).shuffle(queue)

    if not queue:
        logger.info("No due or new cards to study")
    else:
        logger.debug(
            f"Queue built: {len(selected_due)}/{len(due_cards)} due, "
            f"{len(selected_new)}/{len(new_cards)} new"
        )

    return QueueBuildResult(
        queue=queue,
        selected_due=[c.id for c in selected_due],
        selected_new=[c.id for c in selected_new],
        due_total=len(due_cards),
        new_total=len(new_cards),
    )
