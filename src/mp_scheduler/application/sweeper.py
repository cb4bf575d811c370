"""OrderExpirySweeper — cancels abandoned PENDING orders.

Two independent policies read live from the settings store, 0 disables each:
  * order_expiration_hours   (run hourly)
  * auto_cancel_pending_days (run daily)
Each is a single conditional bulk UPDATE, so re-running is a no-op.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.datetime_utils import cutoff_before
from src.mp_order.domain.repository import OrderRepositoryProtocol
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_settings.application.service import SettingsService

logger = logging.getLogger(__name__)

EXPIRED_REASON = "Payment window expired"
AUTO_CANCEL_REASON = "Automatically cancelled after remaining unpaid"


class OrderExpirySweeper:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        settings_service: SettingsService | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._settings = settings_service or SettingsService()

    async def cancel_expired_orders(self, db: AsyncSession) -> int:
        windows = await self._settings.get_order_expiry_windows(db)
        if windows.expire_after_hours <= 0:
            return 0
        return await self._cancel_before(
            db, cutoff_before(hours=windows.expire_after_hours), EXPIRED_REASON
        )

    async def auto_cancel_stale_orders(self, db: AsyncSession) -> int:
        windows = await self._settings.get_order_expiry_windows(db)
        if windows.auto_cancel_after_days <= 0:
            return 0
        return await self._cancel_before(
            db, cutoff_before(days=windows.auto_cancel_after_days), AUTO_CANCEL_REASON
        )

    async def _cancel_before(self, db: AsyncSession, cutoff: datetime, reason: str) -> int:
        try:
            order_ids = await self._repo.cancel_pending_before(db, cutoff, reason)
            await self._repo.fail_transactions(db, order_ids, reason)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if order_ids:
            logger.info(
                "Cancelled %d pending order(s) created before %s: %s",
                len(order_ids), cutoff.isoformat(), reason,
            )
        return len(order_ids)
