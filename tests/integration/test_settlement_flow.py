# tests/integration/test_settlement_flow.py
"""End-to-end settlement against PostgreSQL: order → discount → payment → stats.

Every test uses fresh user ids and discount codes so runs don't interfere.
"""

import asyncio
import uuid

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uid(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:8].upper()}"


async def _create_order(client: AsyncClient, user_id: str, amount: float = 100.0) -> str:
    resp = await client.post(
        "/orders", json={"amount": amount, "user_id": user_id, "description": "itest"}
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["order_id"]


async def _create_discount(client: AsyncClient, code: str, **extra: object) -> dict:
    resp = await client.post("/discounts", json={"code": code, "balance": 30, **extra})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


async def _settle(
    client: AsyncClient, order_id: str, user_id: str, code: str | None = None
) -> dict:
    payload: dict[str, object] = {
        "order_id": order_id,
        "payment_method": "alipay",
        "user_id": user_id,
    }
    if code:
        payload["discount_code"] = code
    resp = await client.post("/payment", json=payload)
    return {"status": resp.status_code, **resp.json()}


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


async def test_settle_with_discount_end_to_end(client: AsyncClient) -> None:
    user = _uid("user_")
    code = _uid("SAVE")
    order_id = await _create_order(client, user, 100.0)
    discount = await _create_discount(client, code)

    result = await _settle(client, order_id, user, code)

    assert result["status"] == 200, result
    assert result["data"]["final_amount"] == 70.0
    assert result["data"]["order"]["status"] == "paid"
    assert result["data"]["order"]["balance"] == 70.0

    stored = (await client.get(f"/discounts/{discount['discount_id']}")).json()["data"]
    assert stored["usage_count"] == 1

    records = (await client.get("/payment/records", params={"order_id": order_id})).json()
    assert len(records["data"]) == 1
    record = records["data"][0]
    assert record["paid_amount"] + record["discount_amount"] == record["amount"]


async def test_second_settlement_is_invalid_state(client: AsyncClient) -> None:
    user = _uid("user_")
    order_id = await _create_order(client, user)

    first = await _settle(client, order_id, user)
    second = await _settle(client, order_id, user)

    assert first["status"] == 200
    assert second["status"] == 409
    assert second["kind"] == "InvalidState"


async def test_validate_does_not_consume(client: AsyncClient) -> None:
    code = _uid("PEEK")
    discount = await _create_discount(client, code, max_usage=1)

    for _ in range(3):
        resp = await client.post("/discounts/validate", json={"code": code, "amount": 50})
        assert resp.status_code == 200

    stored = (await client.get(f"/discounts/{discount['discount_id']}")).json()["data"]
    assert stored["usage_count"] == 0


async def test_concurrent_single_use_code_redeemed_once(client: AsyncClient) -> None:
    user = _uid("user_")
    code = _uid("ONCE")
    await _create_discount(client, code, max_usage=1)
    order_ids = [await _create_order(client, user) for _ in range(3)]

    results = await asyncio.gather(*(_settle(client, oid, user, code) for oid in order_ids))

    assert sorted(r["status"] for r in results) == [200, 400, 400]
    rejected = [r for r in results if r["status"] == 400]
    assert all(r["kind"] == "DiscountRejected" for r in rejected)


async def test_concurrent_settlement_of_same_order(client: AsyncClient) -> None:
    user = _uid("user_")
    order_id = await _create_order(client, user)

    results = await asyncio.gather(*(_settle(client, order_id, user) for _ in range(3)))

    assert sorted(r["status"] for r in results) == [200, 409, 409]
    records = (await client.get("/payment/records", params={"order_id": order_id})).json()
    assert len(records["data"]) == 1


async def test_stats_reflect_payments(client: AsyncClient) -> None:
    before = (await client.get("/stats")).json()["data"]
    user = _uid("user_")
    order_id = await _create_order(client, user, 12.5)
    await _settle(client, order_id, user)

    after = (await client.get("/stats")).json()["data"]

    assert after["total_orders"] == before["total_orders"] + 1
    assert after["total_payments"] == before["total_payments"] + 1
    assert round(after["total_revenue"] - before["total_revenue"], 2) == 12.5
