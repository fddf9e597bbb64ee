# events.py

"""In-process dispatcher for order lifecycle events.

Repositories describe every committed order change as an
:class:`OrderTransition`; routes publish it and subscribers (for example the
load cache sync in :mod:`readyat.app.hooks.order_lifecycle`) react inline.
Subscribers are awaited in registration order, so by the time ``publish``
returns every handler has run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List

from .domain import OrderStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderTransition:
    """A committed change of an order's status.

    ``old_status`` is ``None`` for a newly created (or restored) order and
    ``new_status`` is ``None`` for a deleted one.
    """

    order_id: int
    location_id: int
    old_status: OrderStatus | None
    new_status: OrderStatus | None


Subscriber = Callable[[OrderTransition], Awaitable[None]]


class OrderEventBus:
    """Dispatch :class:`OrderTransition` events to async subscribers."""

    def __init__(self) -> None:
        self._subs: List[Subscriber] = []

    def subscribe(self, handler: Subscriber) -> None:
        """Register ``handler`` for every published transition."""

        self._subs.append(handler)

    async def publish(self, event: OrderTransition) -> None:
        """Deliver ``event`` to all subscribers."""

        logger.debug(
            "order %s at location %s: %s -> %s",
            event.order_id,
            event.location_id,
            event.old_status,
            event.new_status,
        )
        for handler in self._subs:
            await handler(event)
