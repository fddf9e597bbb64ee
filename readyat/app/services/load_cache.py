"""Redis-backed cache of active order counts per location.

The estimator reads the count on every request, so it lives in Redis rather
than being recomputed from the order tables each time. The cache is kept in
step by :mod:`readyat.app.hooks.order_lifecycle`, which issues one
:meth:`LoadCache.increment` or :meth:`LoadCache.decrement` per order entering
or leaving the active set.

Keys
====
``{prefix}{location_id}``
    The active order count. Every read and write refreshes its TTL; once it
    expires the next read rebuilds it from the order store.
``{prefix}{location_id}:lock``
    Short-lived ``SET NX`` lock taken while a cache miss is being resolved so
    that concurrent requests do not all query the order store at once. The
    lock is advisory: a crashed holder is released by the lock TTL.

Failure handling
================
Redis errors never escape this class. Reads fall back to the order store and
writes fall back to :meth:`LoadCache.resync`, which overwrites the entry with
the authoritative count. A decrement that would go below zero is clamped and
also triggers a resync, since it means the entry already drifted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..repos.orders_repo import ActiveOrderCounter, StoreUnavailable
from ..routes_metrics import (
    load_cache_fallbacks_total,
    load_cache_requests_total,
    load_cache_resyncs_total,
    load_cache_underflows_total,
)

logger = logging.getLogger(__name__)

INCREMENT_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
redis.call('EXPIRE', KEYS[1], ARGV[1])
return count
"""

DECREMENT_SCRIPT = """
local count = redis.call('DECR', KEYS[1])
local clamped = 0
if count < 0 then
    redis.call('SET', KEYS[1], '0')
    count = 0
    clamped = 1
end
redis.call('EXPIRE', KEYS[1], ARGV[1])
return {count, clamped}
"""


class LoadCache:
    """Active order counts per location with an order-store fallback."""

    def __init__(
        self,
        redis: Redis,
        counter: ActiveOrderCounter,
        *,
        prefix: str = "location_load:",
        ttl: int = 3600,
        lock_ttl: int = 10,
    ) -> None:
        self._redis = redis
        self._counter = counter
        self.prefix = prefix
        self.ttl = ttl
        self.lock_ttl = lock_ttl
        self._increment = redis.register_script(INCREMENT_SCRIPT)
        self._decrement = redis.register_script(DECREMENT_SCRIPT)

    def key(self, location_id: int) -> str:
        return f"{self.prefix}{location_id}"

    def lock_key(self, location_id: int) -> str:
        return f"{self.key(location_id)}:lock"

    async def get(self, location_id: int) -> int:
        """Return the active order count for ``location_id``."""
        try:
            return await self._get_or_populate(location_id)
        except RedisError as exc:
            logger.warning(
                "Redis unavailable, falling back to order store for location %s: %s",
                location_id,
                exc,
            )
            load_cache_fallbacks_total.labels(op="get").inc()
            return await self._count_or_zero(location_id)
        except StoreUnavailable as exc:
            logger.error(
                "Order store unavailable while filling cache for location %s: %s",
                location_id,
                exc,
            )
            return 0

    async def _get_or_populate(self, location_id: int) -> int:
        key = self.key(location_id)
        cached = await self._redis.getex(key, ex=self.ttl)
        if cached is not None:
            load_cache_requests_total.labels(outcome="hit").inc()
            logger.debug("Cache hit for location %s: %s active orders", location_id, cached)
            return int(cached)

        lock_key = self.lock_key(location_id)
        if not await self._redis.set(lock_key, "1", ex=self.lock_ttl, nx=True):
            load_cache_requests_total.labels(outcome="contended").inc()
            logger.debug(
                "Could not acquire cache lock for location %s, reading order store",
                location_id,
            )
            return await self._count_or_zero(location_id)

        try:
            # Another worker may have filled the entry while we waited.
            cached = await self._redis.getex(key, ex=self.ttl)
            if cached is not None:
                load_cache_requests_total.labels(outcome="hit").inc()
                return int(cached)
            count = await self._counter.count_active(location_id)
            await self._redis.set(key, count, ex=self.ttl)
            load_cache_requests_total.labels(outcome="miss").inc()
            logger.info(
                "Cache miss for location %s, cached store result: %s active orders",
                location_id,
                count,
            )
            return count
        finally:
            await self._release(lock_key)

    async def _release(self, lock_key: str) -> None:
        try:
            await self._redis.delete(lock_key)
        except RedisError as exc:
            # The lock TTL releases it instead.
            logger.warning("Failed to release cache lock %s: %s", lock_key, exc)

    async def _count_or_zero(self, location_id: int) -> int:
        try:
            return await self._counter.count_active(location_id)
        except StoreUnavailable as exc:
            logger.error(
                "Order store unavailable for location %s, assuming no load: %s",
                location_id,
                exc,
            )
            return 0

    async def set(self, location_id: int, count: int) -> None:
        """Overwrite the cached count for ``location_id``."""
        try:
            await self._redis.set(self.key(location_id), max(count, 0), ex=self.ttl)
            logger.debug("Set cache for location %s: %s active orders", location_id, count)
        except RedisError as exc:
            logger.warning("Failed to set cache for location %s: %s", location_id, exc)

    async def increment(self, location_id: int) -> int | None:
        """Atomically add one active order and refresh the TTL.

        Returns the new count, or the resynced count if Redis failed
        (``None`` if the order store failed too).
        """
        try:
            count = int(await self._increment(keys=[self.key(location_id)], args=[self.ttl]))
        except RedisError as exc:
            logger.warning(
                "Failed to increment cache for location %s: %s", location_id, exc
            )
            load_cache_fallbacks_total.labels(op="increment").inc()
            return await self.resync(location_id, reason="store_error")
        logger.debug("Incremented active orders for location %s to %s", location_id, count)
        return count

    async def decrement(self, location_id: int) -> int | None:
        """Atomically remove one active order, clamping at zero."""
        try:
            count, clamped = (
                int(value)
                for value in await self._decrement(
                    keys=[self.key(location_id)], args=[self.ttl]
                )
            )
        except RedisError as exc:
            logger.warning(
                "Failed to decrement cache for location %s: %s", location_id, exc
            )
            load_cache_fallbacks_total.labels(op="decrement").inc()
            return await self.resync(location_id, reason="store_error")
        if clamped:
            load_cache_underflows_total.inc()
            logger.info(
                "Active order count for location %s went below zero, resyncing",
                location_id,
            )
            return await self.resync(location_id, reason="underflow")
        logger.debug("Decremented active orders for location %s to %s", location_id, count)
        return count

    async def resync(self, location_id: int, reason: str = "manual") -> int | None:
        """Rebuild the entry for ``location_id`` from the order store.

        This is a plain overwrite, not an atomic update. Returns the count, or
        ``None`` when the order store is unavailable and the entry is left as
        it was.
        """
        try:
            count = await self._counter.count_active(location_id)
        except StoreUnavailable as exc:
            logger.error(
                "Failed to resync cache for location %s: %s", location_id, exc
            )
            return None
        await self.set(location_id, count)
        load_cache_resyncs_total.labels(reason=reason).inc()
        logger.info(
            "Synced cache from order store for location %s: %s active orders",
            location_id,
            count,
        )
        return count

    async def invalidate(self, location_id: int) -> None:
        """Drop the cached count so the next read rebuilds it."""
        try:
            await self._redis.delete(self.key(location_id))
            logger.debug("Cleared cache for location %s", location_id)
        except RedisError as exc:
            logger.warning("Failed to clear cache for location %s: %s", location_id, exc)

    async def stats(self) -> Dict[str, Any]:
        """Summarise cached entries for monitoring."""
        try:
            keys = [
                key
                async for key in self._redis.scan_iter(match=f"{self.prefix}*")
                if not _as_str(key).endswith(":lock")
            ]
            values = await self._redis.mget(keys) if keys else []
        except RedisError as exc:
            return {
                "cached_locations": 0,
                "total_cached_orders": 0,
                "cache_status": "unavailable",
                "error": str(exc),
            }
        return {
            "cached_locations": len(keys),
            "total_cached_orders": sum(int(v) for v in values if v is not None),
            "cache_status": "healthy",
        }


def _as_str(value: str | bytes) -> str:
    return value.decode() if isinstance(value, bytes) else value
