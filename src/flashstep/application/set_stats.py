"""
Per-set progress summary.

Pure computation over a card list; recomputed on every call so the
mastered count is never stale.
"""

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import datetime

from flashstep.domain.models import Card, CardStatus


@dataclass
class SetStats:
    total: int = 0
    new: int = 0
    learning: int = 0
    young: int = 0
    mature: int = 0
    due: int = 0  # Reviewed cards whose next review has passed
    mastered: int = 0  # next_review_date > now

    @property
    def due_today(self) -> int:
        return self.due + self.new

    @property
    def progress_percent(self) -> int:
        if self.total == 0:
            return 0
        return round(self.mastered / self.total * 100)

    def to_dict(self) -> dict[str, int]:
        d = asdict(self)
        d["due_today"] = self.due_today
        d["progress_percent"] = self.progress_percent
        return d


def summarize(cards: Iterable[Card], now: datetime) -> SetStats:
    stats = SetStats()
    for card in cards:
        stats.total += 1
        status = card.status
        if status is CardStatus.NEW:
            stats.new += 1
        elif status is CardStatus.LEARNING:
            stats.learning += 1
        elif status is CardStatus.YOUNG:
            stats.young += 1
        else:
            stats.mature += 1

        if card.is_mastered(now):
            stats.mastered += 1
        elif not card.is_new:
            stats.due += 1
    return stats
