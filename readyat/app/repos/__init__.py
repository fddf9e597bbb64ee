"""Repository interfaces."""

from .orders_repo import ActiveOrderCounter, StoreUnavailable

__all__ = ["ActiveOrderCounter", "StoreUnavailable"]
