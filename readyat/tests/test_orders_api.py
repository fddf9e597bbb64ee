from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from readyat.app.domain import LineItem, OrderSource
from readyat.app.models import Order
from readyat.app.repos_sqlalchemy import orders_repo_sql


def _key(location_id: int) -> str:
    return f"location_load:{location_id}"


async def _place(client, seeded, **overrides) -> dict:
    payload = {
        "location_id": seeded["location"],
        "source": "online",
        "location_products": [
            {"location_product_id": seeded["pizza_offering"], "quantity": 2},
            {"product_id": seeded["salad"], "quantity": 1},
        ],
    }
    payload.update(overrides)
    resp = await client.post("/api/orders", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def _order_count(sessionmaker) -> int:
    async with sessionmaker() as session:
        return await session.scalar(select(func.count()).select_from(Order))


@pytest.mark.anyio
async def test_create_order(client, seeded, redis):
    data = await _place(client, seeded)
    order = data["order"]
    assert order["status"] == "received"
    assert order["source"] == "online"
    assert order["location_id"] == seeded["location"]
    assert sorted((i["product"]["name"], i["quantity"]) for i in order["items"]) == [
        ("Pizza", 2),
        ("Salad", 1),
    ]
    assert data["load_info"] == {
        "active_orders_count": 1,
        "load_multiplier": 1.0,
        "is_high_load": False,
    }
    assert await redis.get(_key(seeded["location"])) == "1"


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.anyio
async def test_create_order_ready_time(client, seeded):
    before = datetime.now(timezone.utc)
    order = (await _place(client, seeded))["order"]
    ready_at = _parse(order["estimated_ready_at"])
    assert ready_at.utcoffset().total_seconds() == 0
    # 2 x 900s + 300s with an idle kitchen
    assert 2100 <= (ready_at - before).total_seconds() < 2110


@pytest.mark.anyio
async def test_stored_times_keep_utc_offset(client, seeded):
    order = (await _place(client, seeded))["order"]
    resp = await client.get(f"/api/orders/{order['id']}")
    shown = resp.json()["data"]
    assert _parse(shown["estimated_ready_at"]).tzinfo is not None
    assert _parse(shown["created_at"]).tzinfo is not None

    resp = await client.post(
        f"/api/locations/{seeded['location']}/estimate-ready-at",
        json={"location_products": [{"product_id": seeded["salad"], "quantity": 1}]},
    )
    estimate = _parse(resp.json()["data"]["estimated_ready_at"])
    assert estimate.tzinfo is not None
    assert estimate > _parse(shown["created_at"])


@pytest.mark.anyio
async def test_both_sources_accepted(client, seeded):
    await _place(client, seeded, source="online")
    pos = await _place(client, seeded, source="pos")
    assert pos["order"]["source"] == "pos"
    assert pos["load_info"]["active_orders_count"] == 2


@pytest.mark.anyio
async def test_create_order_requires_fields(client, seeded):
    resp = await client.post("/api/orders", json={})
    assert resp.status_code == 422
    errors = resp.json()["detail"]
    assert {"location_id", "source"} <= {e["loc"][-1] for e in errors}
    assert len(errors) == 3


@pytest.mark.anyio
@pytest.mark.parametrize(
    "line",
    [
        {"location_product_id": 999, "quantity": 1},
        {"location_product_id": "soup_offering", "quantity": 1},
        {"location_product_id": "mall_pizza_offering", "quantity": 1},
        {"product_id": 999, "quantity": 1},
    ],
)
async def test_create_order_rejects_unavailable_products(
    client, seeded, redis, sessionmaker, line
):
    line = {k: seeded.get(v, v) if isinstance(v, str) else v for k, v in line.items()}
    resp = await client.post(
        "/api/orders",
        json={"location_id": seeded["location"], "source": "pos", "location_products": [line]},
    )
    assert resp.status_code == 422
    assert resp.json()["detail"]["error"]["code"] == "OFFERING_UNAVAILABLE"
    assert await _order_count(sessionmaker) == 0
    assert not await redis.exists(_key(seeded["location"]))


@pytest.mark.anyio
async def test_create_order_rejects_bad_quantity(client, seeded):
    resp = await client.post(
        "/api/orders",
        json={
            "location_id": seeded["location"],
            "source": "online",
            "location_products": [{"location_product_id": seeded["pizza_offering"], "quantity": 0}],
        },
    )
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_status_lifecycle_updates_load(client, seeded, redis):
    order = (await _place(client, seeded))["order"]
    key = _key(seeded["location"])

    resp = await client.patch(f"/api/orders/{order['id']}/status", json={"status": "preparing"})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "preparing"
    assert await redis.get(key) == "1"

    await client.patch(f"/api/orders/{order['id']}/status", json={"status": "ready"})
    assert await redis.get(key) == "1"

    resp = await client.patch(f"/api/orders/{order['id']}/status", json={"status": "completed"})
    assert resp.json()["data"]["estimated_ready_at"] == order["estimated_ready_at"]
    assert await redis.get(key) == "0"

    # Repeating a status is not a transition.
    await client.patch(f"/api/orders/{order['id']}/status", json={"status": "completed"})
    assert await redis.get(key) == "0"


@pytest.mark.anyio
async def test_status_validation(client, seeded):
    order = (await _place(client, seeded))["order"]
    resp = await client.patch(f"/api/orders/{order['id']}/status", json={"status": "cooking"})
    assert resp.status_code == 422
    resp = await client.patch("/api/orders/999/status", json={"status": "ready"})
    assert resp.status_code == 404
    assert resp.json()["detail"]["error"]["code"] == "ORDER_NOT_FOUND"


@pytest.mark.anyio
async def test_delete_and_restore_move_load(client, seeded, redis):
    order = (await _place(client, seeded))["order"]
    key = _key(seeded["location"])

    resp = await client.delete(f"/api/orders/{order['id']}")
    assert resp.json()["data"] == {"id": order["id"], "deleted": True}
    assert await redis.get(key) == "0"
    assert (await client.get(f"/api/orders/{order['id']}")).status_code == 404
    assert (await client.delete(f"/api/orders/{order['id']}")).status_code == 404

    resp = await client.post(f"/api/orders/{order['id']}/restore")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "received"
    assert await redis.get(key) == "1"

    # Restoring a live order changes nothing.
    await client.post(f"/api/orders/{order['id']}/restore")
    assert await redis.get(key) == "1"


@pytest.mark.anyio
async def test_show_order(client, seeded):
    order = (await _place(client, seeded))["order"]
    resp = await client.get(f"/api/orders/{order['id']}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["data"]["id"] == order["id"]


@pytest.mark.anyio
async def test_order_eta_reflects_existing_load(client, seeded, sessionmaker):
    async with sessionmaker() as session:
        for _ in range(6):
            await orders_repo_sql.create_order(
                session,
                seeded["location"],
                OrderSource.POS,
                [LineItem(seeded["salad_offering"], 1)],
                datetime.now(timezone.utc),
            )
    data = await _place(
        client,
        seeded,
        location_products=[{"location_product_id": seeded["pizza_offering"], "quantity": 1}],
    )
    # Six orders were already active when the estimate was taken.
    assert data["load_info"]["active_orders_count"] == 7
    assert data["load_info"]["load_multiplier"] == 1.2
