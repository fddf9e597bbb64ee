from __future__ import annotations

"""Estimate order ready times from prep durations and kitchen load.

Algorithm
=========
1. Sum ``base_prep_time_seconds * quantity`` over the ordered offerings.
2. Scale the sum by :func:`~readyat.app.eta.load.load_multiplier` of the
   location's active order count, read from :class:`LoadCache`.
3. Never promise less than :data:`MINIMUM_READY_SECONDS`, whatever the load.
4. ``ready_at = now + duration``.

The estimator only reads the load cache; order lifecycle hooks are the sole
writers.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Mapping

from ..domain import LineItem, Offering
from ..services.load_cache import LoadCache
from .load import is_high_load, load_multiplier

MINIMUM_READY_SECONDS = 600


class OfferingValidationError(ValueError):
    """Raised when line items cannot be prepared at the requested location."""


@dataclass(frozen=True)
class LoadInfo:
    active_orders_count: int
    load_multiplier: float
    is_high_load: bool

    def as_dict(self) -> dict:
        return {
            "active_orders_count": self.active_orders_count,
            "load_multiplier": self.load_multiplier,
            "is_high_load": self.is_high_load,
        }


@dataclass(frozen=True)
class Estimate:
    ready_at: datetime
    load_info: LoadInfo
    base_seconds: int
    prep_seconds: float


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _load_info(active_orders: int) -> LoadInfo:
    multiplier = load_multiplier(active_orders)
    return LoadInfo(
        active_orders_count=active_orders,
        load_multiplier=round(multiplier, 2),
        is_high_load=is_high_load(multiplier),
    )


def _invalid_reason(
    line_items: List[LineItem], location_id: int, offerings: Mapping[int, Offering]
) -> str | None:
    if not line_items:
        return "At least one product must be ordered."
    for item in line_items:
        if item.quantity < 1:
            return "Quantity must be at least 1."
        offering = offerings.get(item.offering_id)
        if (
            offering is None
            or offering.location_id != location_id
            or not offering.is_available
        ):
            return "One or more products are not available at this location"
    return None


class PrepTimeEstimator:
    """Compute ready times for ``line_items`` at a location.

    ``offerings`` passed to the methods maps offering ids to the rows loaded
    by :func:`~readyat.app.repos_sqlalchemy.menu_repo_sql.offerings_by_id`.
    """

    def __init__(
        self, cache: LoadCache, now: Callable[[], datetime] = _utcnow
    ) -> None:
        self._cache = cache
        self._now = now

    def validate_offerings(
        self,
        line_items: List[LineItem],
        location_id: int,
        offerings: Mapping[int, Offering],
    ) -> bool:
        """Return ``True`` if every line item can be ordered at ``location_id``."""
        return _invalid_reason(line_items, location_id, offerings) is None

    async def load_info(self, location_id: int) -> LoadInfo:
        return _load_info(await self._cache.get(location_id))

    async def estimate(
        self,
        location_id: int,
        line_items: List[LineItem],
        offerings: Mapping[int, Offering],
    ) -> Estimate:
        """Return the estimated ready time for ``line_items``.

        Raises :class:`OfferingValidationError` if any line item is invalid.
        """
        reason = _invalid_reason(line_items, location_id, offerings)
        if reason is not None:
            raise OfferingValidationError(reason)

        base_seconds = sum(
            offerings[item.offering_id].base_prep_time_seconds * item.quantity
            for item in line_items
        )
        active_orders = await self._cache.get(location_id)
        info = _load_info(active_orders)
        adjusted = base_seconds * load_multiplier(active_orders)
        prep_seconds = max(adjusted, MINIMUM_READY_SECONDS)
        return Estimate(
            ready_at=self._now() + timedelta(seconds=prep_seconds),
            load_info=info,
            base_seconds=base_seconds,
            prep_seconds=prep_seconds,
        )
