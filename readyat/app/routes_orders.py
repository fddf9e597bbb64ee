"""Routes for creating orders and moving them through their lifecycle."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .repos_sqlalchemy import menu_repo_sql, orders_repo_sql
from .routes_metrics import orders_created_total
from .schemas import OrderPayload, StatusPayload, estimate_line_items, order_dict
from .utils.responses import api_error, not_found, ok

router = APIRouter(prefix="/api/orders")
logger = logging.getLogger("api")


async def _order_or_404(session: AsyncSession, order_id: int):
    order = await orders_repo_sql.get_order(session, order_id)
    if order is None:
        raise not_found("order", order_id)
    return order


@router.post("", status_code=201)
async def create_order(
    payload: OrderPayload,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Create an order and fix its estimated ready time."""

    location = await menu_repo_sql.get_location(session, payload.location_id)
    if location is None:
        raise api_error(
            422, "LOCATION_NOT_FOUND", "The selected location does not exist."
        )
    estimator = request.app.state.estimator
    lines, estimate = await estimate_line_items(
        estimator, session, location.id, payload.location_products
    )

    order, transition = await orders_repo_sql.create_order(
        session, location.id, payload.source, lines, estimate.ready_at
    )
    await request.app.state.order_events.publish(transition)
    orders_created_total.inc()
    logger.info(
        "order %s created at location %s, ready in %.0fs",
        order.id,
        location.id,
        estimate.prep_seconds,
    )

    order = await _order_or_404(session, order.id)
    load_info = await estimator.load_info(location.id)
    return ok({"order": order_dict(order), "load_info": load_info.as_dict()})


@router.get("/{order_id}")
async def show_order(order_id: int, session: AsyncSession = Depends(get_session)) -> dict:
    return ok(order_dict(await _order_or_404(session, order_id)))


@router.patch("/{order_id}/status")
async def update_status(
    order_id: int,
    payload: StatusPayload,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Persist a new status; the load cache follows through the event bus."""

    try:
        transition = await orders_repo_sql.update_status(
            session, order_id, payload.status
        )
    except orders_repo_sql.OrderNotFound:
        raise not_found("order", order_id)
    if transition is not None:
        await request.app.state.order_events.publish(transition)
    return ok(order_dict(await _order_or_404(session, order_id)))


@router.delete("/{order_id}")
async def delete_order(
    order_id: int,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> dict:
    try:
        transition = await orders_repo_sql.delete_order(session, order_id)
    except orders_repo_sql.OrderNotFound:
        raise not_found("order", order_id)
    await request.app.state.order_events.publish(transition)
    return ok({"id": order_id, "deleted": True})


@router.post("/{order_id}/restore")
async def restore_order(
    order_id: int,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> dict:
    try:
        transition = await orders_repo_sql.restore_order(session, order_id)
    except orders_repo_sql.OrderNotFound:
        raise not_found("order", order_id)
    if transition is not None:
        await request.app.state.order_events.publish(transition)
    return ok(order_dict(await _order_or_404(session, order_id)))
