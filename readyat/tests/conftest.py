"""Shared fixtures for the readyat test-suite."""

from __future__ import annotations

import pathlib
import sys

import fakeredis
import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from config import Settings
from readyat.app.main import create_app
from readyat.app.models import Base, Company, Location, LocationProduct, Product
from readyat.app.repos.orders_repo import ActiveOrderCounter, StoreUnavailable


class FakeCounter(ActiveOrderCounter):
    """Authoritative counter double with a settable count."""

    def __init__(self, count: int = 0) -> None:
        self.count = count
        self.calls = 0
        self.fail = False

    async def count_active(self, location_id: int) -> int:
        self.calls += 1
        if self.fail:
            raise StoreUnavailable("database is down")
        return self.count


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def redis():
    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def counter() -> FakeCounter:
    return FakeCounter()


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def seeded(sessionmaker) -> dict:
    """Create a company with two locations and a small menu."""

    async with sessionmaker() as session:
        company = Company(name="Test Restaurant")
        other = Company(name="Other Brand")
        session.add_all([company, other])
        await session.flush()

        downtown = Location(company_id=company.id, name="Downtown", address="123 Test St")
        mall = Location(company_id=company.id, name="Mall", address="456 Mall Rd")
        session.add_all([downtown, mall])
        pizza = Product(company_id=company.id, name="Pizza", base_prep_time_seconds=900)
        salad = Product(company_id=company.id, name="Salad", base_prep_time_seconds=300)
        soup = Product(company_id=company.id, name="Soup", base_prep_time_seconds=240)
        session.add_all([pizza, salad, soup])
        await session.flush()

        pizza_dt = LocationProduct(location_id=downtown.id, product_id=pizza.id, is_available=True)
        salad_dt = LocationProduct(location_id=downtown.id, product_id=salad.id, is_available=True)
        soup_dt = LocationProduct(location_id=downtown.id, product_id=soup.id, is_available=False)
        pizza_mall = LocationProduct(location_id=mall.id, product_id=pizza.id, is_available=True)
        session.add_all([pizza_dt, salad_dt, soup_dt, pizza_mall])
        await session.commit()

        return {
            "company": company.id,
            "other_company": other.id,
            "location": downtown.id,
            "other_location": mall.id,
            "pizza": pizza.id,
            "salad": salad.id,
            "soup": soup.id,
            "pizza_offering": pizza_dt.id,
            "salad_offering": salad_dt.id,
            "soup_offering": soup_dt.id,
            "mall_pizza_offering": pizza_mall.id,
        }


@pytest.fixture
def app(engine, redis):
    settings = Settings(database_url="sqlite+aiosqlite://", redis_url="redis://fake")
    return create_app(settings=settings, redis=redis, engine=engine)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
