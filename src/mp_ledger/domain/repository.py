from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_ledger.domain.models import PlatformEarning, SaleRecord


class LedgerRepositoryProtocol(Protocol):
    async def accrue_seller_earning(
        self, db: AsyncSession, seller_id: str, order_id: str, amount: int
    ) -> bool: ...

    async def record_platform_earning(
        self, db: AsyncSession, earning: PlatformEarning
    ) -> bool: ...

    async def get_ledger_balance(self, db: AsyncSession, seller_id: str) -> int: ...

    async def get_total_withdrawn(self, db: AsyncSession, seller_id: str) -> int: ...

    async def list_sales(self, db: AsyncSession, seller_id: str) -> list[SaleRecord]: ...

    async def list_platform_earnings(
        self, db: AsyncSession, cursor_id: str | None, limit: int
    ) -> list[PlatformEarning]: ...

    async def get_platform_earnings_total(self, db: AsyncSession) -> int: ...
