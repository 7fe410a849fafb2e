"""
YAML Card Store: Infrastructure adapter for a deck file.

Implements CardStore on top of a YAML document of the form:

    cards:
      - id: c1
        front: "hond"
        back: "dog"
        learning_step: 2
        next_review_date: 2026-01-05T09:00:00+00:00
        last_review_date: 2026-01-04T09:00:00+00:00

Missing scheduling fields default to a new card that is due immediately.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml
import yaml.error

from flashstep.domain.errors import CardStoreError
from flashstep.domain.models import Card, ScheduleUpdate
from flashstep.domain.ports import CardStore

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_instant(value: Any) -> datetime | None:
    """
    Parse a YAML instant: datetime, ISO string, or epoch seconds/milliseconds.

    Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        raise ValueError(f"Not an instant: {value!r}")
    elif isinstance(value, (int, float)):
        # Millisecond timestamps are what JS clients store
        seconds = value / 1000 if value > 1e11 else value
        dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"Not an instant: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def card_from_dict(data: dict[str, Any]) -> Card:
    card_id = data.get("id")
    if card_id is None or card_id == "":
        raise ValueError("card has no id")
    return Card(
        id=str(card_id),
        learning_step=int(data.get("learning_step", 0) or 0),
        next_review_date=parse_instant(data.get("next_review_date")) or EPOCH,
        last_review_date=parse_instant(data.get("last_review_date")),
        front=data.get("front"),
        back=data.get("back"),
    )


def card_to_dict(card: Card) -> dict[str, Any]:
    d: dict[str, Any] = {"id": card.id}
    if card.front is not None:
        d["front"] = card.front
    if card.back is not None:
        d["back"] = card.back
    d["learning_step"] = card.learning_step
    d["status"] = card.status.value
    d["next_review_date"] = card.next_review_date.isoformat()
    if card.last_review_date is not None:
        d["last_review_date"] = card.last_review_date.isoformat()
    return d


class YamlCardStore(CardStore):
    """
    Reads a deck file once and writes it back after every update.

    Keys other than the card list are preserved on write. `status` is
    written for readers of the file but ignored on load.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._meta: dict[str, Any] = {}
        self._cards: dict[str, Card] | None = None

    def _load(self) -> dict[str, Card]:
        if self._cards is not None:
            return self._cards

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise CardStoreError(f"Cannot read deck file {self.path}: {e}") from e

        try:
            doc = yaml.safe_load(text) or {}
        except yaml.error.YAMLError as e:
            raise CardStoreError(f"Invalid YAML in {self.path}: {e}") from e

        if not isinstance(doc, dict) or not isinstance(doc.get("cards", []), list):
            raise CardStoreError(f"{self.path}: expected a mapping with a 'cards' list")

        cards: dict[str, Card] = {}
        for index, raw in enumerate(doc.get("cards") or []):
            if not isinstance(raw, dict):
                raise CardStoreError(f"{self.path}: card #{index} is not a mapping")
            try:
                card = card_from_dict(raw)
            except (TypeError, ValueError) as e:
                raise CardStoreError(f"{self.path}: card #{index}: {e}") from e
            if card.id in cards:
                logger.warning(f"{self.path}: duplicate card id {card.id}, keeping first")
                continue
            cards[card.id] = card

        self._meta = {k: v for k, v in doc.items() if k != "cards"}
        self._cards = cards
        logger.debug(f"Loaded {len(cards)} cards from {self.path}")
        return cards

    def _write(self) -> None:
        doc = dict(self._meta)
        doc["cards"] = [card_to_dict(c) for c in (self._cards or {}).values()]
        try:
            self.path.write_text(
                yaml.safe_dump(doc, sort_keys=False, allow_unicode=True),
                encoding="utf-8",
            )
        except OSError as e:
            raise CardStoreError(f"Cannot write deck file {self.path}: {e}") from e

    async def get_cards(self, card_ids: list[str] | None = None) -> list[Card]:
        cards = self._load()
        if card_ids is None:
            return list(cards.values())
        return [cards[cid] for cid in dict.fromkeys(card_ids) if cid in cards]

    async def save_update(self, update: ScheduleUpdate) -> None:
        cards = self._load()
        card = cards.get(update.card_id)
        if card is None:
            logger.warning(f"Card {update.card_id} not in {self.path}; update dropped")
            return
        cards[card.id] = update.apply_to(card)
        self._write()
