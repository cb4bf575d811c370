"""EarningsService — seller balances, settlement accrual and the commission report.

`record_settlement` runs the two post-payment steps of order completion, each
in its own DB transaction. A failing step is rolled back and reported by
name; the caller decides how to surface it.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.cents import calculate_commission, cents_to_display
from src.mp_common.id_generator import generate_id
from src.mp_common.pagination import cursor_decode, cursor_encode
from src.mp_ledger.application.schemas import (
    EarningsSummaryResponse,
    PlatformEarningItem,
    PlatformEarningListResponse,
    SaleDetail,
)
from src.mp_ledger.domain.commission import SettlementSplit, apportion_commission
from src.mp_ledger.domain.models import BalanceSnapshot, PlatformEarning, SaleRecord
from src.mp_ledger.domain.repository import LedgerRepositoryProtocol
from src.mp_ledger.infrastructure.persistence import LedgerRepository
from src.mp_order.domain.models import Order

logger = logging.getLogger(__name__)

SELLER_ACCRUAL_STEP = "seller_accrual"
PLATFORM_EARNING_STEP = "platform_earning"


def _sale_commission(sale: SaleRecord) -> int:
    if sale.order_commission is not None:
        return apportion_commission(sale.order_commission, sale.line_total, sale.order_total)
    return calculate_commission(sale.line_total, sale.commission_bps or 0)


def _order_snapshot(order: Order, split: SettlementSplit) -> dict[str, Any]:
    by_item = {line.item_id: line for line in split.lines}
    return {
        "order_id": order.id,
        "buyer_id": order.buyer_id,
        "buyer_email": order.buyer_email,
        "total_amount": order.total_amount,
        "commission_bps": split.rate_bps,
        "items": [
            {
                "item_id": item.item_id,
                "seller_id": item.seller_id,
                "title": item.title,
                "price": item.price,
                "quantity": item.quantity,
                "commission": by_item[item.item_id].commission,
                "seller_amount": by_item[item.item_id].seller_amount,
            }
            for item in order.items
            if item.item_id in by_item
        ],
    }


class EarningsService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def get_balance(self, db: AsyncSession, seller_id: str) -> BalanceSnapshot:
        lifetime = await self._repo.get_ledger_balance(db, seller_id)
        withdrawn = await self._repo.get_total_withdrawn(db, seller_id)
        return BalanceSnapshot(lifetime_earnings=lifetime, total_withdrawn=withdrawn)

    async def get_available_balance(self, db: AsyncSession, seller_id: str) -> int:
        return (await self.get_balance(db, seller_id)).available

    async def get_summary(self, db: AsyncSession, seller_id: str) -> EarningsSummaryResponse:
        balance = await self.get_balance(db, seller_id)
        sales = []
        for sale in await self._repo.list_sales(db, seller_id):
            commission = _sale_commission(sale)
            earnings = sale.line_total - commission
            sales.append(
                SaleDetail(
                    item_id=sale.item_id,
                    title=sale.title,
                    order_id=sale.order_id,
                    sale_price_cents=sale.line_total,
                    commission_cents=commission,
                    earnings_cents=earnings,
                    earnings_display=cents_to_display(earnings),
                    buyer_email=sale.buyer_email,
                    sold_at=sale.sold_at.isoformat() if sale.sold_at else None,
                )
            )
        return EarningsSummaryResponse.from_cents(
            seller_id=seller_id,
            lifetime=balance.lifetime_earnings,
            withdrawn=balance.total_withdrawn,
            available=balance.available,
            sales=sales,
        )

    async def record_settlement(
        self,
        db: AsyncSession,
        order: Order,
        transaction_id: str | None,
        split: SettlementSplit,
    ) -> list[str]:
        """Accrue seller earnings and record the platform earning for a PAID order.

        Both steps are idempotent on their unique keys, so replaying a settlement
        is safe. Returns the names of the steps that failed.
        """
        failed: list[str] = []

        try:
            for seller_id, amount in split.seller_totals.items():
                credited = await self._repo.accrue_seller_earning(db, seller_id, order.id, amount)
                if not credited:
                    logger.info("Seller %s already credited for order %s", seller_id, order.id)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Seller accrual failed for paid order %s", order.id)
            failed.append(SELLER_ACCRUAL_STEP)

        earning = PlatformEarning(
            id=generate_id(),
            order_id=order.id,
            transaction_id=transaction_id,
            amount=split.total_commission,
            commission_bps=split.rate_bps,
            order_data=_order_snapshot(order, split),
        )
        try:
            created = await self._repo.record_platform_earning(db, earning)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Platform earning failed for paid order %s", order.id)
            failed.append(PLATFORM_EARNING_STEP)
        else:
            if not created:
                logger.info("Platform earning for order %s already recorded", order.id)

        return failed

    async def list_platform_earnings(
        self, db: AsyncSession, cursor: str | None, limit: int
    ) -> PlatformEarningListResponse:
        cursor_id = cursor_decode(cursor)
        rows = await self._repo.list_platform_earnings(db, cursor_id, limit + 1)
        has_more = len(rows) > limit
        page = rows[:limit]
        total = await self._repo.get_platform_earnings_total(db)
        items = [
            PlatformEarningItem(
                id=e.id,
                order_id=e.order_id,
                transaction_id=e.transaction_id,
                amount_cents=e.amount,
                amount_display=cents_to_display(e.amount),
                commission_bps=e.commission_bps,
                buyer_email=e.order_data.get("buyer_email"),
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]
        return PlatformEarningListResponse(
            items=items,
            total_earnings_cents=total,
            total_earnings_display=cents_to_display(total),
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )
