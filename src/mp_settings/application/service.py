"""SettingsService — live reads used by the order engine, withdrawals and the sweeper.

Reads never write: a group with no stored row resolves to its defaults
(the seed migration inserts them).
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import SettingGroupNotFoundError
from src.mp_settings.domain.models import (
    GROUPS,
    ExpiryWindows,
    G,
    OrderSettings,
    PaymentSettings,
    PlatformSettings,
    WithdrawalBounds,
    group_from_dict,
    group_to_dict,
)
from src.mp_settings.domain.repository import SettingsRepositoryProtocol
from src.mp_settings.infrastructure.persistence import SettingsRepository

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, repo: SettingsRepositoryProtocol | None = None) -> None:
        self._repo: SettingsRepositoryProtocol = repo or SettingsRepository()

    async def _load(self, db: AsyncSession, cls: type[G]) -> G:
        raw = await self._repo.get_value(db, cls.GROUP)
        return group_from_dict(cls, raw)

    async def get_commission_rate_bps(self, db: AsyncSession) -> int:
        group = await self._load(db, PlatformSettings)
        return group.commission_rate_bps

    async def get_withdrawal_bounds(self, db: AsyncSession) -> WithdrawalBounds:
        group = await self._load(db, PaymentSettings)
        return WithdrawalBounds(
            minimum=group.min_withdrawal_amount,
            maximum=group.max_withdrawal_amount,
        )

    async def get_order_expiry_windows(self, db: AsyncSession) -> ExpiryWindows:
        group = await self._load(db, OrderSettings)
        return ExpiryWindows(
            expire_after_hours=group.order_expiration_hours,
            auto_cancel_after_days=group.auto_cancel_pending_days,
        )

    async def get_group(self, db: AsyncSession, key: str) -> dict[str, Any]:
        cls = GROUPS.get(key)
        if cls is None:
            raise SettingGroupNotFoundError(key)
        return group_to_dict(await self._load(db, cls))

    async def update_group(
        self, db: AsyncSession, key: str, changes: dict[str, Any]
    ) -> dict[str, Any]:
        cls = GROUPS.get(key)
        if cls is None:
            raise SettingGroupNotFoundError(key)
        try:
            current = group_to_dict(await self._load(db, cls))
            current.update({k: v for k, v in changes.items() if v is not None})
            group = group_from_dict(cls, current)
            group.validate()
            stored = await self._repo.upsert_value(db, key, group_to_dict(group))
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Settings group %s updated: %s", key, stored)
        return stored
