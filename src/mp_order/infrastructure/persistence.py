"""OrderRepository — raw SQL persistence implementation.

Every status change is a conditional UPDATE; a result of 0 rows means another
request changed the row first. Transaction ownership stays with the caller.
"""

import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_order.domain.models import Order, OrderItem, PurchasableItem, Transaction

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_GET_ITEMS_FOR_PURCHASE_SQL = text("""
    SELECT id, seller_id, title, price, status
    FROM items
    WHERE id = ANY(:item_ids)
""")

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, buyer_id, buyer_email, total_amount, status)
    VALUES (:id, :buyer_id, :buyer_email, :total_amount, :status)
""")

_INSERT_ORDER_ITEM_SQL = text("""
    INSERT INTO order_items (order_id, item_id, seller_id, title, price, quantity)
    VALUES (:order_id, :item_id, :seller_id, :title, :price, :quantity)
""")

_INSERT_TRANSACTION_SQL = text("""
    INSERT INTO transactions (id, order_id, amount, status, metadata)
    VALUES (:id, :order_id, :amount, :status, CAST(:metadata AS JSONB))
""")

_SELECT_COLUMNS = """
    id, buyer_id, buyer_email, total_amount, status, cancel_reason, created_at, updated_at
"""

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = :id
""")

_GET_ORDER_ITEMS_SQL = text("""
    SELECT order_id, item_id, seller_id, title, price, quantity
    FROM order_items
    WHERE order_id = ANY(:order_ids)
    ORDER BY id
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE (CAST(:buyer_id AS TEXT) IS NULL OR buyer_id = :buyer_id)
      AND (CAST(:status AS TEXT) IS NULL OR status = :status)
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_TX_COLUMNS = "id, order_id, amount, status, metadata, created_at, updated_at"

_GET_TRANSACTION_SQL = text(f"""
    SELECT {_TX_COLUMNS} FROM transactions WHERE order_id = :order_id
""")

# CANCELLED is included: a late successful payment still settles the order
_MARK_ORDER_PAID_SQL = text("""
    UPDATE orders
    SET status = 'PAID', cancel_reason = NULL, updated_at = NOW()
    WHERE id = :id AND status IN ('PENDING', 'CANCELLED')
    RETURNING id
""")

_COMPLETE_TRANSACTION_SQL = text(f"""
    UPDATE transactions
    SET status = 'COMPLETED',
        metadata = metadata || CAST(:patch AS JSONB),
        updated_at = NOW()
    WHERE order_id = :order_id
    RETURNING {_TX_COLUMNS}
""")

_MARK_ITEMS_SOLD_SQL = text("""
    UPDATE items
    SET status = 'SOLD', updated_at = NOW()
    WHERE id = ANY(:item_ids) AND status <> 'SOLD'
    RETURNING id
""")

_CANCEL_PENDING_ORDER_SQL = text("""
    UPDATE orders
    SET status = 'CANCELLED', cancel_reason = :reason, updated_at = NOW()
    WHERE id = :id AND status = 'PENDING'
    RETURNING id
""")

_CANCEL_PENDING_BEFORE_SQL = text("""
    UPDATE orders
    SET status = 'CANCELLED', cancel_reason = :reason, updated_at = NOW()
    WHERE status = 'PENDING' AND created_at < :cutoff
    RETURNING id
""")

_FAIL_TRANSACTIONS_SQL = text("""
    UPDATE transactions
    SET status = 'FAILED',
        metadata = metadata || jsonb_build_object('cancellation_reason', CAST(:reason AS TEXT)),
        updated_at = NOW()
    WHERE order_id = ANY(:order_ids) AND status IN ('INITIATED', 'PROCESSING')
""")

_MERGE_TRANSACTION_METADATA_SQL = text("""
    UPDATE transactions
    SET metadata = metadata || CAST(:patch AS JSONB), updated_at = NOW()
    WHERE order_id = :order_id
""")

_FIND_ORDER_BY_REFERENCE_SQL = text("""
    SELECT order_id FROM transactions
    WHERE metadata->>'provider_reference' = :reference
       OR metadata->>'tx_ref' = :reference
       OR metadata->'references' @> jsonb_build_array(CAST(:reference AS TEXT))
    LIMIT 1
""")

_REMOVE_FROM_CART_SQL = text("""
    DELETE FROM cart_items
    WHERE user_id = :user_id AND item_id = ANY(:item_ids)
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_order(row: Any, items: list[OrderItem] | None = None) -> Order:
    return Order(
        id=row.id,
        buyer_id=row.buyer_id,
        buyer_email=row.buyer_email,
        total_amount=row.total_amount,
        status=row.status,
        items=items or [],
        cancel_reason=row.cancel_reason,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_order_item(row: Any) -> OrderItem:
    return OrderItem(
        order_id=row.order_id,
        item_id=row.item_id,
        seller_id=row.seller_id,
        title=row.title,
        price=row.price,
        quantity=row.quantity,
    )


def _row_to_transaction(row: Any) -> Transaction:
    return Transaction(
        id=row.id,
        order_id=row.order_id,
        amount=row.amount,
        status=row.status,
        metadata=dict(row.metadata or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class OrderRepository:
    async def get_items_for_purchase(
        self, db: AsyncSession, item_ids: list[str]
    ) -> list[PurchasableItem]:
        result = await db.execute(_GET_ITEMS_FOR_PURCHASE_SQL, {"item_ids": item_ids})
        return [
            PurchasableItem(
                id=row.id,
                seller_id=row.seller_id,
                title=row.title,
                price=row.price,
                status=row.status,
            )
            for row in result.fetchall()
        ]

    async def create_order(
        self, db: AsyncSession, order: Order, transaction: Transaction
    ) -> None:
        await db.execute(
            _INSERT_ORDER_SQL,
            {
                "id": order.id,
                "buyer_id": order.buyer_id,
                "buyer_email": order.buyer_email,
                "total_amount": order.total_amount,
                "status": order.status,
            },
        )
        for item in order.items:
            await db.execute(
                _INSERT_ORDER_ITEM_SQL,
                {
                    "order_id": order.id,
                    "item_id": item.item_id,
                    "seller_id": item.seller_id,
                    "title": item.title,
                    "price": item.price,
                    "quantity": item.quantity,
                },
            )
        await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "id": transaction.id,
                "order_id": order.id,
                "amount": transaction.amount,
                "status": transaction.status,
                "metadata": json.dumps(transaction.metadata),
            },
        )

    async def _items_by_order(
        self, db: AsyncSession, order_ids: list[str]
    ) -> dict[str, list[OrderItem]]:
        grouped: dict[str, list[OrderItem]] = {oid: [] for oid in order_ids}
        if not order_ids:
            return grouped
        result = await db.execute(_GET_ORDER_ITEMS_SQL, {"order_ids": order_ids})
        for row in result.fetchall():
            grouped[row.order_id].append(_row_to_order_item(row))
        return grouped

    async def get_order(self, db: AsyncSession, order_id: str) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        if row is None:
            return None
        items = await self._items_by_order(db, [order_id])
        return _row_to_order(row, items[order_id])

    async def get_transaction(self, db: AsyncSession, order_id: str) -> Transaction | None:
        result = await db.execute(_GET_TRANSACTION_SQL, {"order_id": order_id})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def mark_order_paid(self, db: AsyncSession, order_id: str) -> bool:
        result = await db.execute(_MARK_ORDER_PAID_SQL, {"id": order_id})
        return result.fetchone() is not None

    async def complete_transaction(
        self, db: AsyncSession, order_id: str, metadata_patch: dict[str, Any]
    ) -> Transaction | None:
        result = await db.execute(
            _COMPLETE_TRANSACTION_SQL,
            {"order_id": order_id, "patch": json.dumps(metadata_patch)},
        )
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def mark_items_sold(self, db: AsyncSession, item_ids: list[str]) -> list[str]:
        result = await db.execute(_MARK_ITEMS_SOLD_SQL, {"item_ids": item_ids})
        return [row.id for row in result.fetchall()]

    async def cancel_pending_order(
        self, db: AsyncSession, order_id: str, reason: str
    ) -> bool:
        result = await db.execute(_CANCEL_PENDING_ORDER_SQL, {"id": order_id, "reason": reason})
        return result.fetchone() is not None

    async def fail_transactions(
        self, db: AsyncSession, order_ids: list[str], reason: str
    ) -> int:
        if not order_ids:
            return 0
        result = await db.execute(
            _FAIL_TRANSACTIONS_SQL, {"order_ids": order_ids, "reason": reason}
        )
        return int(result.rowcount)  # type: ignore[attr-defined]

    async def cancel_pending_before(
        self, db: AsyncSession, cutoff: datetime, reason: str
    ) -> list[str]:
        result = await db.execute(
            _CANCEL_PENDING_BEFORE_SQL, {"cutoff": cutoff, "reason": reason}
        )
        return [row.id for row in result.fetchall()]

    async def merge_transaction_metadata(
        self, db: AsyncSession, order_id: str, metadata_patch: dict[str, Any]
    ) -> None:
        await db.execute(
            _MERGE_TRANSACTION_METADATA_SQL,
            {"order_id": order_id, "patch": json.dumps(metadata_patch)},
        )

    async def find_order_id_by_reference(
        self, db: AsyncSession, reference: str
    ) -> str | None:
        result = await db.execute(_FIND_ORDER_BY_REFERENCE_SQL, {"reference": reference})
        row = result.fetchone()
        return row.order_id if row else None

    async def remove_from_cart(
        self, db: AsyncSession, buyer_id: str, item_ids: list[str]
    ) -> int:
        result = await db.execute(
            _REMOVE_FROM_CART_SQL, {"user_id": buyer_id, "item_ids": item_ids}
        )
        return int(result.rowcount)  # type: ignore[attr-defined]

    async def list_orders(
        self,
        db: AsyncSession,
        buyer_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Order]:
        result = await db.execute(
            _LIST_ORDERS_SQL,
            {"buyer_id": buyer_id, "status": status, "cursor_id": cursor_id, "limit": limit},
        )
        rows = result.fetchall()
        items = await self._items_by_order(db, [row.id for row in rows])
        return [_row_to_order(row, items[row.id]) for row in rows]
