# order_lifecycle.py
"""Keep the load cache in step with order lifecycle events."""

from __future__ import annotations

import logging

from ..domain import is_active
from ..events import OrderEventBus, OrderTransition
from ..services.load_cache import LoadCache

logger = logging.getLogger(__name__)


class LoadSync:
    """Translate order transitions into load cache increments and decrements.

    Only a change of active-set membership touches the cache: an order moving
    from ``received`` to ``preparing`` leaves the count alone, while an order
    being created, completed, deleted or restored moves it by exactly one.
    """

    def __init__(self, cache: LoadCache) -> None:
        self._cache = cache

    def attach(self, bus: OrderEventBus) -> None:
        bus.subscribe(self.on_transition)

    async def on_transition(self, event: OrderTransition) -> None:
        was_active = is_active(event.old_status)
        now_active = is_active(event.new_status)
        if now_active and not was_active:
            count = await self._cache.increment(event.location_id)
            logger.info(
                "Order %s became active (%s -> %s), location %s now at %s",
                event.order_id,
                _label(event.old_status),
                _label(event.new_status),
                event.location_id,
                count,
            )
        elif was_active and not now_active:
            count = await self._cache.decrement(event.location_id)
            logger.info(
                "Order %s became inactive (%s -> %s), location %s now at %s",
                event.order_id,
                _label(event.old_status),
                _label(event.new_status),
                event.location_id,
                count,
            )


def _label(status) -> str:
    return status.value if status is not None else "none"
