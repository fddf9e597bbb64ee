"""Repository interfaces for order counting."""

from abc import ABC, abstractmethod


class StoreUnavailable(RuntimeError):
    """Raised when the authoritative order store cannot be queried."""


class ActiveOrderCounter(ABC):
    """Contract for the authoritative count of active orders."""

    @abstractmethod
    async def count_active(self, location_id: int) -> int:
        """Return the number of active orders at ``location_id``.

        Implementations raise :class:`StoreUnavailable` when the backing store
        is unreachable.
        """
        raise NotImplementedError
