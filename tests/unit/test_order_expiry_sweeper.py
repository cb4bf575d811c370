"""Unit tests for OrderExpirySweeper."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.mp_scheduler.application.sweeper import (
    AUTO_CANCEL_REASON,
    EXPIRED_REASON,
    OrderExpirySweeper,
)
from src.mp_settings.domain.models import ExpiryWindows


def _sweeper(hours: int = 24, days: int = 7) -> tuple[OrderExpirySweeper, AsyncMock]:
    repo = AsyncMock()
    repo.cancel_pending_before.return_value = ["o1", "o2"]
    settings_service = AsyncMock()
    settings_service.get_order_expiry_windows.return_value = ExpiryWindows(hours, days)
    return OrderExpirySweeper(repo=repo, settings_service=settings_service), repo


class TestCancelExpiredOrders:
    async def test_cancels_orders_older_than_window(self) -> None:
        sweeper, repo = _sweeper(hours=24)
        db = AsyncMock()

        count = await sweeper.cancel_expired_orders(db)

        assert count == 2
        cutoff, reason = repo.cancel_pending_before.call_args.args[1:]
        assert reason == EXPIRED_REASON
        expected = datetime.now(UTC) - timedelta(hours=24)
        assert abs((cutoff - expected).total_seconds()) < 5
        repo.fail_transactions.assert_awaited_once_with(db, ["o1", "o2"], EXPIRED_REASON)
        db.commit.assert_awaited_once()

    async def test_zero_window_disables(self) -> None:
        sweeper, repo = _sweeper(hours=0)
        assert await sweeper.cancel_expired_orders(AsyncMock()) == 0
        repo.cancel_pending_before.assert_not_awaited()

    async def test_nothing_to_cancel(self) -> None:
        sweeper, repo = _sweeper()
        repo.cancel_pending_before.return_value = []
        assert await sweeper.cancel_expired_orders(AsyncMock()) == 0

    async def test_failure_rolls_back(self) -> None:
        sweeper, repo = _sweeper()
        repo.fail_transactions.side_effect = RuntimeError("db down")
        db = AsyncMock()
        with pytest.raises(RuntimeError):
            await sweeper.cancel_expired_orders(db)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestAutoCancelStaleOrders:
    async def test_uses_day_window(self) -> None:
        sweeper, repo = _sweeper(days=7)

        await sweeper.auto_cancel_stale_orders(AsyncMock())

        cutoff, reason = repo.cancel_pending_before.call_args.args[1:]
        assert reason == AUTO_CANCEL_REASON
        expected = datetime.now(UTC) - timedelta(days=7)
        assert abs((cutoff - expected).total_seconds()) < 5

    async def test_zero_days_disables(self) -> None:
        sweeper, repo = _sweeper(days=0)
        assert await sweeper.auto_cancel_stale_orders(AsyncMock()) == 0
        repo.cancel_pending_before.assert_not_awaited()
