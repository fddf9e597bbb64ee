"""Location menu, ready-time estimation and load diagnostics routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .repos_sqlalchemy import menu_repo_sql
from .routes_metrics import estimates_total
from .schemas import EstimatePayload, estimate_line_items
from .utils.responses import api_error, not_found, ok

router = APIRouter(prefix="/api/locations")
router_admin = APIRouter(prefix="/api/admin")


async def _location_or_404(session: AsyncSession, location_id: int):
    location = await menu_repo_sql.get_location(session, location_id)
    if location is None:
        raise not_found("location", location_id)
    return location


@router.get("/{location_id}/products")
async def location_products(
    location_id: int, session: AsyncSession = Depends(get_session)
) -> dict:
    """Return offerings currently available at the location."""
    await _location_or_404(session, location_id)
    return ok(await menu_repo_sql.list_available_offerings(session, location_id))


@router.post("/{location_id}/estimate-ready-at")
async def estimate_ready_at(
    location_id: int,
    payload: EstimatePayload,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Estimate the ready time of a hypothetical order without storing it."""

    await _location_or_404(session, location_id)
    _, estimate = await estimate_line_items(
        request.app.state.estimator, session, location_id, payload.location_products
    )
    estimates_total.inc()
    return ok(
        {
            "estimated_ready_at": estimate.ready_at,
            "estimated_prep_seconds": round(estimate.prep_seconds),
            "load_info": estimate.load_info.as_dict(),
        }
    )


@router.get("/{location_id}/load")
async def location_load(
    location_id: int,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> dict:
    await _location_or_404(session, location_id)
    info = await request.app.state.estimator.load_info(location_id)
    return ok(info.as_dict())


@router.post("/{location_id}/load/resync")
async def resync_location_load(
    location_id: int,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Rebuild the cached active order count from the order tables."""
    await _location_or_404(session, location_id)
    count = await request.app.state.load_cache.resync(location_id)
    if count is None:
        raise api_error(503, "ORDER_STORE_UNAVAILABLE", "Could not count active orders")
    return ok({"location_id": location_id, "active_orders_count": count})


@router_admin.get("/load-cache")
async def load_cache_stats(request: Request) -> dict:
    return ok(await request.app.state.load_cache.stats())
