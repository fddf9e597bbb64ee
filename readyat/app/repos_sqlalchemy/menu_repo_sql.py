"""SQLAlchemy-backed helpers for companies, locations and offerings."""

from __future__ import annotations

from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import Offering
from ..models import Company, Location, LocationProduct, Product


def _to_offering(row: LocationProduct) -> Offering:
    return Offering(
        id=row.id,
        location_id=row.location_id,
        product_id=row.product_id,
        is_available=bool(row.is_available),
        base_prep_time_seconds=row.product.base_prep_time_seconds,
    )


async def get_location(session: AsyncSession, location_id: int) -> Location | None:
    return await session.get(Location, location_id)


async def get_company(session: AsyncSession, company_id: int) -> Company | None:
    return await session.get(Company, company_id)


async def offerings_by_id(
    session: AsyncSession, offering_ids: Iterable[int]
) -> Dict[int, Offering]:
    """Return offerings keyed by id for every id that exists.

    Missing ids are simply absent from the mapping; availability and location
    checks are left to the caller.
    """

    ids = set(offering_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(LocationProduct).where(LocationProduct.id.in_(ids))
    )
    return {row.id: _to_offering(row) for row in result.scalars()}


async def offering_ids_for_products(
    session: AsyncSession, location_id: int, product_ids: Iterable[int]
) -> Dict[int, int]:
    """Map each product id offered at ``location_id`` to its offering id."""

    ids = set(product_ids)
    if not ids:
        return {}
    result = await session.execute(
        select(LocationProduct.product_id, LocationProduct.id).where(
            LocationProduct.location_id == location_id,
            LocationProduct.product_id.in_(ids),
        )
    )
    return {row.product_id: row.id for row in result}


async def list_available_offerings(
    session: AsyncSession, location_id: int
) -> List[dict]:
    """Return available offerings at ``location_id`` with product details."""

    result = await session.execute(
        select(LocationProduct)
        .where(
            LocationProduct.location_id == location_id,
            LocationProduct.is_available.is_(True),
        )
        .order_by(LocationProduct.id)
    )
    return [
        {
            "id": row.id,
            "location_id": row.location_id,
            "product_id": row.product_id,
            "is_available": row.is_available,
            "product": product_dict(row.product),
        }
        for row in result.scalars()
    ]


def product_dict(product: Product) -> dict:
    return {
        "id": product.id,
        "company_id": product.company_id,
        "name": product.name,
        "base_prep_time_seconds": product.base_prep_time_seconds,
    }


def location_dict(location: Location) -> dict:
    return {
        "id": location.id,
        "company_id": location.company_id,
        "name": location.name,
        "address": location.address,
    }


async def list_company_products(session: AsyncSession, company_id: int) -> List[dict]:
    result = await session.execute(
        select(Product).where(Product.company_id == company_id).order_by(Product.id)
    )
    return [product_dict(p) for p in result.scalars()]


async def list_company_locations(
    session: AsyncSession, company_id: int
) -> List[dict]:
    result = await session.execute(
        select(Location).where(Location.company_id == company_id).order_by(Location.id)
    )
    return [location_dict(loc) for loc in result.scalars()]
