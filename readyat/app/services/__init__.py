"""Service layer helpers for the API."""

from .load_cache import LoadCache

__all__ = ["LoadCache"]
