"""Request payloads and response shaping shared by the routes."""

from __future__ import annotations

from typing import List, Tuple

from pydantic import AliasChoices, BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from .domain import LineItem, OrderSource, OrderStatus
from .eta.service import Estimate, OfferingValidationError, PrepTimeEstimator
from .models import Order
from .repos_sqlalchemy import menu_repo_sql
from .utils.responses import offering_unavailable


class LineItemIn(BaseModel):
    """Ordered quantity of a location offering or of a catalog product."""

    location_product_id: int | None = None
    product_id: int | None = None
    quantity: int = Field(ge=1)

    @model_validator(mode="after")
    def _one_reference(self) -> "LineItemIn":
        if (self.location_product_id is None) == (self.product_id is None):
            raise ValueError("exactly one of location_product_id or product_id is required")
        return self


class EstimatePayload(BaseModel):
    location_products: List[LineItemIn] = Field(
        min_length=1, validation_alias=AliasChoices("location_products", "products")
    )


class OrderPayload(EstimatePayload):
    location_id: int
    source: OrderSource


class StatusPayload(BaseModel):
    status: OrderStatus


async def resolve_line_items(
    session: AsyncSession, location_id: int, items: List[LineItemIn]
) -> List[LineItem]:
    """Turn request line items into :class:`LineItem` offering references.

    Items given by ``product_id`` are mapped to the location's offering of
    that product; a product the location does not offer is rejected.
    """

    product_ids = [i.product_id for i in items if i.product_id is not None]
    by_product = await menu_repo_sql.offering_ids_for_products(
        session, location_id, product_ids
    )
    lines = []
    for item in items:
        offering_id = item.location_product_id
        if offering_id is None:
            offering_id = by_product.get(item.product_id)
            if offering_id is None:
                raise offering_unavailable()
        lines.append(LineItem(offering_id=offering_id, quantity=item.quantity))
    return lines


async def estimate_line_items(
    estimator: PrepTimeEstimator,
    session: AsyncSession,
    location_id: int,
    items: List[LineItemIn],
) -> Tuple[List[LineItem], Estimate]:
    """Resolve and validate ``items`` for ``location_id`` and estimate them.

    Raises a 422 ``OFFERING_UNAVAILABLE`` error when any line cannot be
    prepared at the location.
    """

    lines = await resolve_line_items(session, location_id, items)
    offerings = await menu_repo_sql.offerings_by_id(
        session, [line.offering_id for line in lines]
    )
    if not estimator.validate_offerings(lines, location_id, offerings):
        raise offering_unavailable()
    try:
        estimate = await estimator.estimate(location_id, lines, offerings)
    except OfferingValidationError as exc:
        raise offering_unavailable(str(exc)) from exc
    return lines, estimate


def order_dict(order: Order) -> dict:
    return {
        "id": order.id,
        "location_id": order.location_id,
        "source": OrderSource(order.source).value,
        "status": order.status,
        "estimated_ready_at": order.estimated_ready_at,
        "created_at": order.created_at,
        "items": [
            {
                "location_product_id": item.location_product_id,
                "quantity": item.quantity,
                "product": menu_repo_sql.product_dict(item.offering.product),
            }
            for item in order.items
        ],
    }
