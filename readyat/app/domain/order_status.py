"""Order status enumeration and active-set membership."""

from __future__ import annotations

from enum import Enum


class OrderStatus(str, Enum):
    """Enumerate the lifecycle states for an order."""

    RECEIVED = "received"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES


class OrderSource(str, Enum):
    """Channel an order was placed through."""

    ONLINE = "online"
    POS = "pos"


# Statuses that count towards kitchen load.
ACTIVE_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.RECEIVED, OrderStatus.PREPARING, OrderStatus.READY}
)


def active_values() -> list[str]:
    """Return the raw values of active statuses for database filters."""

    return sorted(status.value for status in ACTIVE_STATUSES)


def is_active(status: OrderStatus | str | None) -> bool:
    """Return ``True`` if ``status`` contributes to kitchen load.

    ``None`` stands for an order that does not exist (not yet created or
    deleted) and is never active.
    """

    if status is None:
        return False
    return OrderStatus(status) in ACTIVE_STATUSES
