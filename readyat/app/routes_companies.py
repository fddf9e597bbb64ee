"""Company catalog routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .repos_sqlalchemy import menu_repo_sql
from .utils.responses import not_found, ok

router = APIRouter(prefix="/api/companies")


async def _company_or_404(session: AsyncSession, company_id: int):
    company = await menu_repo_sql.get_company(session, company_id)
    if company is None:
        raise not_found("company", company_id)
    return company


@router.get("/{company_id}/products")
async def company_products(
    company_id: int, session: AsyncSession = Depends(get_session)
) -> dict:
    """Return the company's master product catalog."""
    await _company_or_404(session, company_id)
    return ok(await menu_repo_sql.list_company_products(session, company_id))


@router.get("/{company_id}/locations")
async def company_locations(
    company_id: int, session: AsyncSession = Depends(get_session)
) -> dict:
    await _company_or_404(session, company_id)
    return ok(await menu_repo_sql.list_company_locations(session, company_id))
