"""Order expiry sweep against the real database."""

import pytest
from sqlalchemy import text

from src.mp_common.database import async_session_factory
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_scheduler.application.sweeper import EXPIRED_REASON, OrderExpirySweeper

pytestmark = pytest.mark.asyncio(loop_scope="session")

SHIPPING = {"full_name": "Test Buyer", "address": "Bole Rd 1", "city": "Addis Ababa", "country": "ET"}


async def test_backdated_pending_order_is_cancelled(client, make_user, make_item) -> None:
    seller_id, _ = await make_user("SELLER")
    _, buyer_token = await make_user()
    item_id = await make_item(seller_id, 3000)
    resp = await client.post(
        "/api/v1/orders",
        json={"items": [{"item_id": item_id}], "shipping": SHIPPING, "payment_method": "chapa"},
        headers={"Authorization": f"Bearer {buyer_token}"},
    )
    order_id = resp.json()["data"]["order_id"]

    async with async_session_factory() as db:
        await db.execute(
            text("UPDATE orders SET created_at = NOW() - INTERVAL '30 days' WHERE id = :id"),
            {"id": order_id},
        )
        await db.commit()

        assert await OrderExpirySweeper().cancel_expired_orders(db) >= 1
        # Second run finds nothing new for this order
        await OrderExpirySweeper().cancel_expired_orders(db)

        repo = OrderRepository()
        order = await repo.get_order(db, order_id)
        transaction = await repo.get_transaction(db, order_id)

    assert order is not None
    assert order.status == "CANCELLED"
    assert order.cancel_reason == EXPIRED_REASON
    assert transaction is not None
    assert transaction.status == "FAILED"
