"""
Card pool filtering helpers shared by the queue builder and the phase batcher.
"""

import logging
import random
from collections.abc import Iterable, Sequence
from datetime import datetime

from flashstep.domain.errors import ContractViolation
from flashstep.domain.models import Card

logger = logging.getLogger(__name__)


def validate_card_limit(card_limit: int | None) -> None:
    """A card limit is either None (no cap) or a positive integer."""
    if card_limit is not None and card_limit <= 0:
        raise ContractViolation(f"card_limit must be a positive integer, got {card_limit}")


def dedupe(pool: Iterable[Card]) -> list[Card]:
    """Keep the first occurrence of each card ID."""
    seen: set[str] = set()
    out: list[Card] = []
    for card in pool:
        if card.id in seen:
            continue
        seen.add(card.id)
        out.append(card)
    return out


def due_filter(pool: Iterable[Card], now: datetime) -> list[Card]:
    """Cards whose next review date has passed."""
    return [c for c in pool if c.next_review_date <= now]


def new_filter(pool: Iterable[Card]) -> list[Card]:
    """Cards that were never successfully scheduled."""
    return [c for c in pool if c.learning_step == 0]


def restrict_to_ids(pool: Iterable[Card], card_ids: Sequence[str]) -> list[Card]:
    """
    Keep only the listed cards, in the order of `card_ids`.

    IDs that do not resolve to a card in the pool are dropped.
    """
    by_id = {c.id: c for c in pool}
    out = [by_id[cid] for cid in dict.fromkeys(card_ids) if cid in by_id]
    if len(out) < len(set(card_ids)):
        logger.debug(f"Dropped {len(set(card_ids)) - len(out)} unresolvable card IDs")
    return out


def study_all(
    pool: Iterable[Card],
    now: datetime,
    card_limit: int | None = None,
    only_unmastered: bool = False,
    rng: random.Random | None = None,
) -> list[Card]:
    """
    Candidate list for "study everything" mode.

    Ignores due dates, optionally keeps only unmastered cards, shuffles
    uniformly and caps the result at `card_limit`.

    Args:
        pool: Cards of the set being studied.
        now: Reference instant for the mastered check.
        card_limit: Maximum number of cards to return (None = all).
        only_unmastered: Drop cards whose next review lies in the future.
        rng: Random source; defaults to the module-level generator.

    Returns:
        Shuffled, capped list of cards.
    """
    validate_card_limit(card_limit)

    cards = dedupe(pool)
    if only_unmastered:
        cards = [c for c in cards if not c.is_mastered(now)]

    (rng or random).shuffle(cards)

    if card_limit is not None:
        cards = cards[:card_limit]
    return cards
