"""SQLAlchemy-backed repository implementations."""

from .orders_repo_sql import OrderNotFound, SQLActiveOrderCounter

__all__ = ["OrderNotFound", "SQLActiveOrderCounter"]
