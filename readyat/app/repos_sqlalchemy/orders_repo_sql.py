"""SQLAlchemy-backed repository helpers for orders.

Every helper that changes whether an order counts towards kitchen load
returns an :class:`~readyat.app.events.OrderTransition` describing the
committed change. Status changes use a compare-and-set ``UPDATE`` guarded by
the previously read status, so when several writers race on the same order
only one of them observes (and reports) each transition.

Read-only passes end with ``commit()`` rather than ``rollback()`` so that
instances the caller already loaded are not expired.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError

from ..domain import LineItem, OrderSource, OrderStatus, active_values
from ..events import OrderTransition
from ..models import Order, OrderItem
from ..repos.orders_repo import ActiveOrderCounter, StoreUnavailable


class OrderNotFound(LookupError):
    """Raised when an order does not exist or is in the wrong deletion state."""


async def create_order(
    session: AsyncSession,
    location_id: int,
    source: OrderSource,
    lines: List[LineItem],
    estimated_ready_at: datetime,
) -> Tuple[Order, OrderTransition]:
    """Persist a new ``received`` order with ``lines`` and commit it.

    ``estimated_ready_at`` is written once here and never updated afterwards.
    """

    order = Order(
        location_id=location_id,
        source=source,
        status=OrderStatus.RECEIVED.value,
        estimated_ready_at=estimated_ready_at,
    )
    session.add(order)
    await session.flush()  # obtain order.id

    for line in lines:
        session.add(
            OrderItem(
                order_id=order.id,
                location_product_id=line.offering_id,
                quantity=line.quantity,
            )
        )
    await session.commit()

    transition = OrderTransition(
        order_id=order.id,
        location_id=location_id,
        old_status=None,
        new_status=OrderStatus.RECEIVED,
    )
    return order, transition


async def get_order(session: AsyncSession, order_id: int) -> Order | None:
    """Return the live (not deleted) order with its line items."""

    result = await session.execute(
        select(Order)
        .where(Order.id == order_id, Order.deleted_at.is_(None))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def update_status(
    session: AsyncSession, order_id: int, new_status: OrderStatus
) -> OrderTransition | None:
    """Move ``order_id`` to ``new_status``.

    Returns ``None`` when the order already had ``new_status``. Raises
    :class:`OrderNotFound` for unknown or deleted orders.
    """

    while True:
        row = (
            await session.execute(
                select(Order.status, Order.location_id).where(
                    Order.id == order_id, Order.deleted_at.is_(None)
                )
            )
        ).first()
        if row is None:
            raise OrderNotFound(order_id)
        old_status = OrderStatus(row.status)
        if old_status == new_status:
            await session.commit()
            return None
        result = await session.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.status == old_status.value,
                Order.deleted_at.is_(None),
            )
            .values(status=new_status.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            await session.commit()
            return OrderTransition(order_id, row.location_id, old_status, new_status)
        # Lost the race against another writer; nothing was written, re-read.
        await session.commit()


async def delete_order(session: AsyncSession, order_id: int) -> OrderTransition:
    """Soft delete ``order_id`` and report the status it left with."""

    while True:
        row = (
            await session.execute(
                select(Order.status, Order.location_id).where(
                    Order.id == order_id, Order.deleted_at.is_(None)
                )
            )
        ).first()
        if row is None:
            raise OrderNotFound(order_id)
        result = await session.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.status == row.status,
                Order.deleted_at.is_(None),
            )
            .values(deleted_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            await session.commit()
            return OrderTransition(
                order_id, row.location_id, OrderStatus(row.status), None
            )
        await session.commit()


async def restore_order(session: AsyncSession, order_id: int) -> OrderTransition | None:
    """Undo a soft delete. Returns ``None`` if the order was not deleted."""

    while True:
        row = (
            await session.execute(
                select(Order.status, Order.location_id, Order.deleted_at).where(
                    Order.id == order_id
                )
            )
        ).first()
        if row is None:
            raise OrderNotFound(order_id)
        if row.deleted_at is None:
            await session.commit()
            return None
        result = await session.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.status == row.status,
                Order.deleted_at.is_not(None),
            )
            .values(deleted_at=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            await session.commit()
            return OrderTransition(
                order_id, row.location_id, None, OrderStatus(row.status)
            )
        await session.commit()


async def count_active(session: AsyncSession, location_id: int) -> int:
    """Return the number of live orders at ``location_id`` in an active status."""

    total = await session.scalar(
        select(func.count())
        .select_from(Order)
        .where(
            Order.location_id == location_id,
            Order.status.in_(active_values()),
            Order.deleted_at.is_(None),
        )
    )
    return int(total or 0)


class SQLActiveOrderCounter(ActiveOrderCounter):
    """Authoritative active-order count read from the order tables."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    async def count_active(self, location_id: int) -> int:
        try:
            async with self._sessionmaker() as session:
                return await count_active(session, location_id)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(f"order store unavailable: {exc}") from exc
