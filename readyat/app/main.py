# main.py

"""FastAPI application estimating order ready times under kitchen load."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.asyncio import Redis, from_url
from sqlalchemy.ext.asyncio import AsyncEngine

from config import Settings, get_settings

from . import db as app_db
from .eta.service import PrepTimeEstimator
from .events import OrderEventBus
from .hooks.order_lifecycle import LoadSync
from .middlewares import RequestIdMiddleware
from .obs.logging import configure_logging
from .repos_sqlalchemy import SQLActiveOrderCounter
from .routes_companies import router as companies_router
from .routes_locations import router as locations_router
from .routes_locations import router_admin as locations_admin_router
from .routes_metrics import router as metrics_router
from .routes_orders import router as orders_router
from .services.load_cache import LoadCache

logger = logging.getLogger("api")


def create_app(
    settings: Settings | None = None,
    redis: Redis | None = None,
    engine: AsyncEngine | None = None,
) -> FastAPI:
    """Build the application and wire the load-aware ETA engine.

    ``redis`` and ``engine`` default to clients built from ``settings``; tests
    pass fakes instead.
    """

    settings = settings or get_settings()
    owns_redis = redis is None
    if redis is None:
        redis = from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
        )
    if engine is None:
        engine = app_db.create_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        await app_db.create_all(engine)
        logger.info("readyat started")
        yield
        if owns_redis:
            await redis.aclose()
        await engine.dispose()

    app = FastAPI(title="readyat", lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)

    sessionmaker = app_db.create_sessionmaker(engine)
    cache = LoadCache(
        redis,
        SQLActiveOrderCounter(sessionmaker),
        prefix=settings.load_cache_prefix,
        ttl=settings.load_cache_ttl,
        lock_ttl=settings.load_cache_lock_ttl,
    )
    order_events = OrderEventBus()
    LoadSync(cache).attach(order_events)

    app.state.settings = settings
    app.state.redis = redis
    app.state.engine = engine
    app.state.sessionmaker = sessionmaker
    app.state.load_cache = cache
    app.state.estimator = PrepTimeEstimator(cache)
    app.state.order_events = order_events

    app.include_router(orders_router)
    app.include_router(locations_router)
    app.include_router(locations_admin_router)
    app.include_router(companies_router)
    app.include_router(metrics_router)
    return app


app = create_app()
