import pytest

from readyat.app.domain import OrderStatus
from readyat.app.events import OrderEventBus, OrderTransition
from readyat.app.hooks.order_lifecycle import LoadSync
from readyat.app.services.load_cache import LoadCache


class _RecordingCache:
    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    async def increment(self, location_id: int) -> int:
        self.calls.append(("increment", location_id))
        return 1

    async def decrement(self, location_id: int) -> int:
        self.calls.append(("decrement", location_id))
        return 0


S = OrderStatus


@pytest.mark.anyio
@pytest.mark.parametrize(
    "old, new, expected",
    [
        (None, S.RECEIVED, ["increment"]),
        (S.RECEIVED, S.PREPARING, []),
        (S.PREPARING, S.READY, []),
        (S.READY, S.COMPLETED, ["decrement"]),
        (S.RECEIVED, S.COMPLETED, ["decrement"]),
        (S.COMPLETED, S.PREPARING, ["increment"]),
        (S.PREPARING, None, ["decrement"]),
        (S.COMPLETED, None, []),
        (None, S.COMPLETED, []),
        (None, S.READY, ["increment"]),
    ],
)
async def test_membership_changes_map_to_one_cache_call(old, new, expected):
    cache = _RecordingCache()
    bus = OrderEventBus()
    LoadSync(cache).attach(bus)
    await bus.publish(OrderTransition(order_id=1, location_id=7, old_status=old, new_status=new))
    assert cache.calls == [(op, 7) for op in expected]


@pytest.mark.anyio
async def test_sequence_of_transitions_tracks_net_count(redis, counter):
    cache = LoadCache(redis, counter)
    bus = OrderEventBus()
    LoadSync(cache).attach(bus)

    events = [
        OrderTransition(1, 5, None, S.RECEIVED),
        OrderTransition(2, 5, None, S.RECEIVED),
        OrderTransition(1, 5, S.RECEIVED, S.PREPARING),
        OrderTransition(1, 5, S.PREPARING, S.COMPLETED),
        OrderTransition(3, 5, None, S.RECEIVED),
        OrderTransition(3, 5, S.RECEIVED, None),
    ]
    for event in events:
        await bus.publish(event)

    assert await redis.get("location_load:5") == "1"
    assert counter.calls == 0
