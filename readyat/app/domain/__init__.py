"""Domain models and helpers."""

from .menu import LineItem, Offering
from .order_status import ACTIVE_STATUSES, OrderSource, OrderStatus, active_values, is_active

__all__ = [
    "ACTIVE_STATUSES",
    "LineItem",
    "Offering",
    "OrderSource",
    "OrderStatus",
    "active_values",
    "is_active",
]
