#!/usr/bin/env python3
"""Seed demo companies, menus and locations.

Two brands are created, each with a product catalog and two locations that
offer every product. Pass ``--reset`` to drop and recreate all tables first.
"""

from __future__ import annotations

import argparse
import asyncio
import json

from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from readyat.app import db as app_db
from readyat.app.models import Base, Company, Location, LocationProduct, Product

# name -> (products as (name, base prep seconds), locations as (name, address))
COMPANIES = {
    "Pizza Palace": (
        [
            ("Margherita Pizza", 600),
            ("Pepperoni Pizza", 660),
            ("Caesar Salad", 300),
            ("Garlic Bread", 240),
            ("Pasta Carbonara", 900),
        ],
        [
            ("Downtown Location", "123 Main St, Downtown"),
            ("Mall Location", "456 Shopping Mall, Level 2"),
        ],
    ),
    "Burger Barn": (
        [
            ("Classic Burger", 480),
            ("Cheeseburger", 540),
            ("French Fries", 180),
            ("Chicken Wings", 720),
        ],
        [
            ("Highway Location", "789 Route 66"),
            ("Campus Location", "12 University Ave"),
        ],
    ),
}


async def seed(session: AsyncSession) -> dict[str, object]:
    """Insert demo data and return created identifiers."""

    created: dict[str, object] = {}
    for company_name, (products, locations) in COMPANIES.items():
        company = Company(name=company_name)
        session.add(company)
        await session.flush()

        product_rows = [
            Product(company_id=company.id, name=name, base_prep_time_seconds=secs)
            for name, secs in products
        ]
        session.add_all(product_rows)
        location_rows = [
            Location(company_id=company.id, name=name, address=address)
            for name, address in locations
        ]
        session.add_all(location_rows)
        await session.flush()

        for location in location_rows:
            session.add_all(
                LocationProduct(
                    location_id=location.id, product_id=product.id, is_available=True
                )
                for product in product_rows
            )
        created[company_name] = {
            "id": company.id,
            "locations": [loc.id for loc in location_rows],
            "products": [p.id for p in product_rows],
        }

    await session.commit()
    return created


async def main(reset: bool) -> None:
    engine = app_db.create_engine(get_settings().database_url)
    if reset:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
    await app_db.create_all(engine)
    async with app_db.create_sessionmaker(engine)() as session:
        data = await seed(session)
    await engine.dispose()
    print(json.dumps(data))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo restaurant data")
    parser.add_argument(
        "--reset", action="store_true", help="Drop existing tables before seeding"
    )
    args = parser.parse_args()
    asyncio.run(main(args.reset))
