"""
In-Memory Card Store: Infrastructure adapter backed by a dict.

Implements CardStore for tests and for embedding the scheduler in a host
application that already holds its cards in memory.
"""

import logging
from collections.abc import Iterable

from flashstep.domain.models import Card, ScheduleUpdate
from flashstep.domain.ports import CardStore

logger = logging.getLogger(__name__)


class InMemoryCardStore(CardStore):
    """Keeps cards in insertion order, keyed by ID."""

    def __init__(self, cards: Iterable[Card] = ()):
        self._cards: dict[str, Card] = {c.id: c for c in cards}

    def add(self, card: Card) -> None:
        self._cards[card.id] = card

    def remove(self, card_id: str) -> None:
        self._cards.pop(card_id, None)

    def get(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    def all(self) -> list[Card]:
        return list(self._cards.values())

    async def get_cards(self, card_ids: list[str] | None = None) -> list[Card]:
        if card_ids is None:
            return self.all()
        return [self._cards[cid] for cid in dict.fromkeys(card_ids) if cid in self._cards]

    async def save_update(self, update: ScheduleUpdate) -> None:
        card = self._cards.get(update.card_id)
        if card is None:
            # Deleted while the session was running
            logger.warning(f"Card {update.card_id} no longer exists; update dropped")
            return
        self._cards[card.id] = update.apply_to(card)
