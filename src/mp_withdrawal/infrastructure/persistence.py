"""WithdrawalRepository — raw SQL persistence implementation.

Status changes are conditional on the status the caller read (`WHERE status =
:from_status`). Completion additionally locks the seller's account row and
re-checks the balance inside the same UPDATE, so two concurrent completions
can never jointly overdraw the ledger.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import DisputeStatus
from src.mp_common.errors import InternalError
from src.mp_withdrawal.domain.models import SellerProfile, StatusTotals, Withdrawal

_COLUMNS = "id, user_id, payout_account, amount, status, metadata, created_at, updated_at"

# ---------------------------------------------------------------------------
# SQL: validation reads
# ---------------------------------------------------------------------------

_PAYOUT_ACCOUNT_OWNED_SQL = text("""
    SELECT 1 FROM items
    WHERE seller_id = :seller_id AND payout_account = :payout_account
    LIMIT 1
""")

_GET_SELLER_PROFILE_SQL = text("""
    SELECT id, email, email_verified, banned FROM users WHERE id = :id
""")

_COUNT_ACTIVE_DISPUTES_SQL = text("""
    SELECT COUNT(*) AS n FROM disputes
    WHERE target_user_id = :user_id AND status = :status
""")

_FIND_IN_FLIGHT_SQL = text(f"""
    SELECT {_COLUMNS} FROM withdrawals
    WHERE user_id = :user_id
      AND status IN ('INITIATED', 'PROCESSING')
      AND (CAST(:exclude_id AS TEXT) IS NULL OR id <> :exclude_id)
    ORDER BY id DESC
    LIMIT 1
""")

# ---------------------------------------------------------------------------
# SQL: mutations
# ---------------------------------------------------------------------------

_INSERT_WITHDRAWAL_SQL = text(f"""
    INSERT INTO withdrawals (id, user_id, payout_account, amount, status, metadata)
    VALUES (:id, :user_id, :payout_account, :amount, :status, CAST(:metadata AS JSONB))
    RETURNING {_COLUMNS}
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE withdrawals
    SET status = :to_status,
        metadata = metadata || CAST(:patch AS JSONB),
        updated_at = NOW()
    WHERE id = :id AND status = :from_status
    RETURNING {_COLUMNS}
""")

_LOCK_SELLER_ACCOUNT_SQL = text("""
    SELECT user_id FROM seller_accounts WHERE user_id = :user_id FOR UPDATE
""")

_COMPLETE_IF_COVERED_SQL = text("""
    UPDATE withdrawals w
    SET status = 'COMPLETED',
        metadata = w.metadata || CAST(:patch AS JSONB),
        updated_at = NOW()
    WHERE w.id = :id
      AND w.status = :from_status
      AND (
            SELECT COALESCE(MAX(sa.ledger_balance), 0)
            FROM seller_accounts sa WHERE sa.user_id = w.user_id
          ) - (
            SELECT COALESCE(SUM(c.amount), 0)
            FROM withdrawals c WHERE c.user_id = w.user_id AND c.status = 'COMPLETED'
          ) >= w.amount
    RETURNING w.id, w.user_id, w.payout_account, w.amount, w.status, w.metadata,
              w.created_at, w.updated_at
""")

# ---------------------------------------------------------------------------
# SQL: reads
# ---------------------------------------------------------------------------

_GET_WITHDRAWAL_SQL = text(f"""
    SELECT {_COLUMNS} FROM withdrawals WHERE id = :id
""")

_LIST_WITHDRAWALS_SQL = text(f"""
    SELECT {_COLUMNS} FROM withdrawals
    WHERE (CAST(:user_id AS TEXT) IS NULL OR user_id = :user_id)
      AND (CAST(:status AS TEXT) IS NULL OR status = :status)
      AND (CAST(:cursor_id AS TEXT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_TOTALS_BY_STATUS_SQL = text("""
    SELECT status, COUNT(*) AS n, COALESCE(SUM(amount), 0) AS total
    FROM withdrawals
    GROUP BY status
""")


def _row_to_withdrawal(row: Any) -> Withdrawal:
    return Withdrawal(
        id=row.id,
        user_id=row.user_id,
        payout_account=row.payout_account,
        amount=row.amount,
        status=row.status,
        metadata=dict(row.metadata or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class WithdrawalRepository:
    async def payout_account_belongs_to(
        self, db: AsyncSession, seller_id: str, payout_account: str
    ) -> bool:
        result = await db.execute(
            _PAYOUT_ACCOUNT_OWNED_SQL,
            {"seller_id": seller_id, "payout_account": payout_account},
        )
        return result.fetchone() is not None

    async def get_seller_profile(
        self, db: AsyncSession, seller_id: str
    ) -> SellerProfile | None:
        result = await db.execute(_GET_SELLER_PROFILE_SQL, {"id": seller_id})
        row = result.fetchone()
        if row is None:
            return None
        return SellerProfile(
            id=row.id,
            email=row.email,
            email_verified=bool(row.email_verified),
            banned=bool(row.banned),
        )

    async def count_active_disputes(self, db: AsyncSession, seller_id: str) -> int:
        result = await db.execute(
            _COUNT_ACTIVE_DISPUTES_SQL,
            {"user_id": seller_id, "status": DisputeStatus.IN_PROGRESS.value},
        )
        row = result.fetchone()
        return int(row.n) if row else 0

    async def find_in_flight(
        self, db: AsyncSession, seller_id: str, exclude_id: str | None = None
    ) -> Withdrawal | None:
        result = await db.execute(
            _FIND_IN_FLIGHT_SQL, {"user_id": seller_id, "exclude_id": exclude_id}
        )
        row = result.fetchone()
        return _row_to_withdrawal(row) if row else None

    async def insert(self, db: AsyncSession, withdrawal: Withdrawal) -> Withdrawal:
        result = await db.execute(
            _INSERT_WITHDRAWAL_SQL,
            {
                "id": withdrawal.id,
                "user_id": withdrawal.user_id,
                "payout_account": withdrawal.payout_account,
                "amount": withdrawal.amount,
                "status": withdrawal.status,
                "metadata": json.dumps(withdrawal.metadata),
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Withdrawal insert returned no rows — this should never happen")
        return _row_to_withdrawal(row)

    async def get(self, db: AsyncSession, withdrawal_id: str) -> Withdrawal | None:
        result = await db.execute(_GET_WITHDRAWAL_SQL, {"id": withdrawal_id})
        row = result.fetchone()
        return _row_to_withdrawal(row) if row else None

    async def update_status(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        from_status: str,
        to_status: str,
        metadata_patch: dict[str, Any],
    ) -> Withdrawal | None:
        result = await db.execute(
            _UPDATE_STATUS_SQL,
            {
                "id": withdrawal_id,
                "from_status": from_status,
                "to_status": to_status,
                "patch": json.dumps(metadata_patch),
            },
        )
        row = result.fetchone()
        return _row_to_withdrawal(row) if row else None

    async def lock_seller_account(self, db: AsyncSession, seller_id: str) -> None:
        await db.execute(_LOCK_SELLER_ACCOUNT_SQL, {"user_id": seller_id})

    async def complete_if_covered(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        from_status: str,
        metadata_patch: dict[str, Any],
    ) -> Withdrawal | None:
        """Mark COMPLETED only if available balance still covers the amount."""
        result = await db.execute(
            _COMPLETE_IF_COVERED_SQL,
            {
                "id": withdrawal_id,
                "from_status": from_status,
                "patch": json.dumps(metadata_patch),
            },
        )
        row = result.fetchone()
        return _row_to_withdrawal(row) if row else None

    async def list_withdrawals(
        self,
        db: AsyncSession,
        seller_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Withdrawal]:
        result = await db.execute(
            _LIST_WITHDRAWALS_SQL,
            {"user_id": seller_id, "status": status, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_withdrawal(row) for row in result.fetchall()]

    async def totals_by_status(self, db: AsyncSession) -> dict[str, StatusTotals]:
        result = await db.execute(_TOTALS_BY_STATUS_SQL)
        return {
            row.status: StatusTotals(count=int(row.n), amount=int(row.total))
            for row in result.fetchall()
        }
