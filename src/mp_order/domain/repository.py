"""Repository Protocol — dependency inversion for testability."""

from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_order.domain.models import Order, PurchasableItem, Transaction


class OrderRepositoryProtocol(Protocol):
    async def get_items_for_purchase(
        self, db: AsyncSession, item_ids: list[str]
    ) -> list[PurchasableItem]: ...

    async def create_order(
        self, db: AsyncSession, order: Order, transaction: Transaction
    ) -> None: ...

    async def get_order(self, db: AsyncSession, order_id: str) -> Order | None: ...

    async def get_transaction(self, db: AsyncSession, order_id: str) -> Transaction | None: ...

    async def mark_order_paid(self, db: AsyncSession, order_id: str) -> bool: ...

    async def complete_transaction(
        self, db: AsyncSession, order_id: str, metadata_patch: dict[str, Any]
    ) -> Transaction | None: ...

    async def mark_items_sold(self, db: AsyncSession, item_ids: list[str]) -> list[str]: ...

    async def cancel_pending_order(
        self, db: AsyncSession, order_id: str, reason: str
    ) -> bool: ...

    async def fail_transactions(
        self, db: AsyncSession, order_ids: list[str], reason: str
    ) -> int: ...

    async def cancel_pending_before(
        self, db: AsyncSession, cutoff: datetime, reason: str
    ) -> list[str]: ...

    async def merge_transaction_metadata(
        self, db: AsyncSession, order_id: str, metadata_patch: dict[str, Any]
    ) -> None: ...

    async def find_order_id_by_reference(
        self, db: AsyncSession, reference: str
    ) -> str | None: ...

    async def remove_from_cart(
        self, db: AsyncSession, buyer_id: str, item_ids: list[str]
    ) -> int: ...

    async def list_orders(
        self,
        db: AsyncSession,
        buyer_id: str | None,
        status: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Order]: ...
