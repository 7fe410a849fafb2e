"""
Ports (interfaces) for card storage.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Card, ScheduleUpdate


class CardStore(ABC):
    """
    Port for reading card pools and persisting scheduling updates.

    Implementations:
        - InMemoryCardStore: Dict-backed store for tests and embedding.
        - YamlCardStore: Reads and writes a YAML deck file.
    """

    @abstractmethod
    async def get_cards(self, card_ids: list[str] | None = None) -> list[Card]:
        """
        Fetch a snapshot of the card pool.

        Args:
            card_ids: Restrict to these IDs (in this order). Unknown IDs are
                dropped silently. None returns every card in store order.

        Returns:
            List of Card objects.
        """
        pass

    @abstractmethod
    async def save_update(self, update: ScheduleUpdate) -> None:
        """
        Persist a scheduling update keyed by card ID.

        Args:
            update: The learning step, next review date and last review date to store.
        """
        pass
