"""Database engine and session helpers.

The DSN is read from :class:`config.Settings`. SQLite URLs get a
:class:`~sqlalchemy.pool.StaticPool` so that in-memory databases are shared
across sessions, which the tests and local development rely on.
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from .models import Base


def create_engine(url: str) -> AsyncEngine:
    """Create an :class:`AsyncEngine` for ``url``."""
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables known to :data:`Base`."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session bound to the app's engine."""
    async with request.app.state.sessionmaker() as session:
        yield session


__all__ = ["create_engine", "create_sessionmaker", "create_all", "get_session"]
