from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_withdrawal.domain.models import SellerProfile, StatusTotals, Withdrawal


class WithdrawalRepositoryProtocol(Protocol):
    async def payout_account_belongs_to(
        self, db: AsyncSession, seller_id: str, payout_account: str
    ) -> bool: ...

    async def get_seller_profile(
        self, db: AsyncSession, seller_id: str
    ) -> SellerProfile | None: ...

    async def count_active_disputes(self, db: AsyncSession, seller_id: str) -> int: ...

    async def find_in_flight(
        self, db: AsyncSession, seller_id: str, exclude_id: str | None = None
    ) -> Withdrawal | None: ...

    async def insert(self, db: AsyncSession, withdrawal: Withdrawal) -> Withdrawal: ...

    async def get(self, db: AsyncSession, withdrawal_id: str) -> Withdrawal | None: ...

    async def update_status(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        from_status: str,
        to_status: str,
        metadata_patch: dict[str, Any],
    ) -> Withdrawal | None: ...

    async def lock_seller_account(self, db: AsyncSession, seller_id: str) -> None: ...

    async def complete_if_covered(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        from_status: str,
        metadata_patch: dict[str, Any],
    ) -> Withdrawal | None: ...

    async def list_withdrawals(
        self,
        db: AsyncSession,
        seller_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Withdrawal]: ...

    async def totals_by_status(self, db: AsyncSession) -> dict[str, StatusTotals]: ...
