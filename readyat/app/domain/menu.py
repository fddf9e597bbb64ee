"""Plain menu value objects shared by repositories and the estimator."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Offering:
    """A product made available at a location, flattened for estimation."""

    id: int
    location_id: int
    product_id: int
    is_available: bool
    base_prep_time_seconds: int


@dataclass(frozen=True)
class LineItem:
    """Requested ``quantity`` of the offering ``offering_id``."""

    offering_id: int
    quantity: int = 1
