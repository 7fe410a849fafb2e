# Domain Package
from .errors import (
    CardStoreError,
    ContractViolation,
    FlashstepError,
    InvalidRatingError,
    PhaseFinishedError,
)
from .models import (
    Batch,
    Card,
    CardStatus,
    Phase,
    Rating,
    ReviewLogEntry,
    ScheduleUpdate,
    derive_status,
)
from .ports import CardStore

__all__ = [
    "Batch",
    "Card",
    "CardStatus",
    "CardStore",
    "CardStoreError",
    "ContractViolation",
    "FlashstepError",
    "InvalidRatingError",
    "Phase",
    "PhaseFinishedError",
    "Rating",
    "ReviewLogEntry",
    "ScheduleUpdate",
    "derive_status",
]
