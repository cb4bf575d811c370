"""LedgerRepository — seller accrual, platform earnings and balance reads.

The seller balance is a counter: only `ledger_balance = ledger_balance + :amount`.
Each increment is guarded by an append-only ledger entry that is unique per
(user, entry type, order), so a replayed settlement never double-credits.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import LedgerEntryType
from src.mp_ledger.domain.models import PlatformEarning, SaleRecord

# ---------------------------------------------------------------------------
# SQL: seller accrual
# ---------------------------------------------------------------------------

_INSERT_SELLER_ENTRY_SQL = text("""
    INSERT INTO seller_ledger_entries
        (user_id, entry_type, amount, reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, 'ORDER', :order_id, :description)
    ON CONFLICT (user_id, entry_type, reference_id) DO NOTHING
    RETURNING id
""")

_INCREMENT_BALANCE_SQL = text("""
    INSERT INTO seller_accounts (user_id, ledger_balance)
    VALUES (:user_id, :amount)
    ON CONFLICT (user_id) DO UPDATE
        SET ledger_balance = seller_accounts.ledger_balance + EXCLUDED.ledger_balance,
            updated_at = NOW()
    RETURNING ledger_balance
""")

_INSERT_PLATFORM_EARNING_SQL = text("""
    INSERT INTO platform_earnings
        (id, order_id, transaction_id, amount, commission_bps, order_data)
    VALUES
        (:id, :order_id, :transaction_id, :amount, :commission_bps, CAST(:order_data AS JSONB))
    ON CONFLICT (order_id) DO NOTHING
    RETURNING id
""")

# ---------------------------------------------------------------------------
# SQL: reads
# ---------------------------------------------------------------------------

_GET_LEDGER_BALANCE_SQL = text("""
    SELECT ledger_balance FROM seller_accounts WHERE user_id = :user_id
""")

_GET_TOTAL_WITHDRAWN_SQL = text("""
    SELECT COALESCE(SUM(amount), 0) AS total
    FROM withdrawals
    WHERE user_id = :user_id AND status = 'COMPLETED'
""")

_LIST_SALES_SQL = text("""
    SELECT oi.item_id, oi.title, oi.price, oi.quantity,
           o.id AS order_id, o.total_amount AS order_total, o.buyer_email,
           o.updated_at AS sold_at,
           pe.amount AS order_commission,
           CAST(t.metadata->>'commission_bps' AS INTEGER) AS commission_bps
    FROM order_items oi
    JOIN orders o ON o.id = oi.order_id AND o.status = 'PAID'
    JOIN items i ON i.id = oi.item_id AND i.status = 'SOLD'
    LEFT JOIN platform_earnings pe ON pe.order_id = o.id
    LEFT JOIN transactions t ON t.order_id = o.id
    WHERE oi.seller_id = :seller_id
    ORDER BY o.updated_at DESC
""")

_LIST_PLATFORM_EARNINGS_SQL = text("""
    SELECT id, order_id, transaction_id, amount, commission_bps, order_data, created_at
    FROM platform_earnings
    WHERE (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_PLATFORM_EARNINGS_TOTAL_SQL = text("""
    SELECT COALESCE(SUM(amount), 0) AS total FROM platform_earnings
""")


def _row_to_sale(row: Any) -> SaleRecord:
    return SaleRecord(
        item_id=row.item_id,
        title=row.title,
        order_id=row.order_id,
        price=row.price,
        quantity=row.quantity,
        order_total=row.order_total,
        buyer_email=row.buyer_email,
        sold_at=row.sold_at,
        order_commission=row.order_commission,
        commission_bps=row.commission_bps,
    )


def _row_to_platform_earning(row: Any) -> PlatformEarning:
    return PlatformEarning(
        id=row.id,
        order_id=row.order_id,
        transaction_id=row.transaction_id,
        amount=row.amount,
        commission_bps=row.commission_bps,
        order_data=dict(row.order_data or {}),
        created_at=row.created_at,
    )


class LedgerRepository:
    async def accrue_seller_earning(
        self, db: AsyncSession, seller_id: str, order_id: str, amount: int
    ) -> bool:
        """Credit `amount` once per (seller, order). Returns False on replay."""
        result = await db.execute(
            _INSERT_SELLER_ENTRY_SQL,
            {
                "user_id": seller_id,
                "entry_type": LedgerEntryType.SELLER_PAYMENT.value,
                "amount": amount,
                "order_id": order_id,
                "description": f"Seller payment for order {order_id}",
            },
        )
        if result.fetchone() is None:
            return False
        await db.execute(_INCREMENT_BALANCE_SQL, {"user_id": seller_id, "amount": amount})
        return True

    async def record_platform_earning(
        self, db: AsyncSession, earning: PlatformEarning
    ) -> bool:
        """Insert the order's earning row. Returns False if it already exists."""
        result = await db.execute(
            _INSERT_PLATFORM_EARNING_SQL,
            {
                "id": earning.id,
                "order_id": earning.order_id,
                "transaction_id": earning.transaction_id,
                "amount": earning.amount,
                "commission_bps": earning.commission_bps,
                "order_data": json.dumps(earning.order_data, default=str),
            },
        )
        return result.fetchone() is not None

    async def get_ledger_balance(self, db: AsyncSession, seller_id: str) -> int:
        result = await db.execute(_GET_LEDGER_BALANCE_SQL, {"user_id": seller_id})
        row = result.fetchone()
        return int(row.ledger_balance) if row else 0

    async def get_total_withdrawn(self, db: AsyncSession, seller_id: str) -> int:
        result = await db.execute(_GET_TOTAL_WITHDRAWN_SQL, {"user_id": seller_id})
        row = result.fetchone()
        return int(row.total) if row else 0

    async def list_sales(self, db: AsyncSession, seller_id: str) -> list[SaleRecord]:
        result = await db.execute(_LIST_SALES_SQL, {"seller_id": seller_id})
        return [_row_to_sale(row) for row in result.fetchall()]

    async def list_platform_earnings(
        self, db: AsyncSession, cursor_id: str | None, limit: int
    ) -> list[PlatformEarning]:
        result = await db.execute(
            _LIST_PLATFORM_EARNINGS_SQL, {"cursor_id": cursor_id, "limit": limit}
        )
        return [_row_to_platform_earning(row) for row in result.fetchall()]

    async def get_platform_earnings_total(self, db: AsyncSession) -> int:
        result = await db.execute(_PLATFORM_EARNINGS_TOTAL_SQL)
        row = result.fetchone()
        return int(row.total) if row else 0
