"""Unit tests for SettingsService using a mock repository."""

from unittest.mock import AsyncMock

import pytest

from src.mp_common.errors import InvalidSettingError, SettingGroupNotFoundError
from src.mp_settings.application.service import SettingsService
from src.mp_settings.domain.models import ExpiryWindows, WithdrawalBounds


def _service(stored: dict | None = None) -> tuple[SettingsService, AsyncMock]:
    repo = AsyncMock()
    repo.get_value.return_value = stored
    repo.upsert_value.side_effect = lambda db, key, value: value
    return SettingsService(repo=repo), repo


class TestReads:
    async def test_commission_rate_from_store(self) -> None:
        svc, repo = _service({"commission_rate_bps": 1500})
        assert await svc.get_commission_rate_bps(AsyncMock()) == 1500
        repo.get_value.assert_awaited_once()
        assert repo.get_value.call_args.args[1] == "platform"

    async def test_defaults_when_row_missing(self) -> None:
        svc, repo = _service(None)
        assert await svc.get_commission_rate_bps(AsyncMock()) == 1000
        repo.upsert_value.assert_not_awaited()

    async def test_withdrawal_bounds(self) -> None:
        svc, _ = _service({"min_withdrawal_amount": 2000, "max_withdrawal_amount": 90000})
        assert await svc.get_withdrawal_bounds(AsyncMock()) == WithdrawalBounds(2000, 90000)

    async def test_expiry_windows(self) -> None:
        svc, _ = _service({"order_expiration_hours": 0, "auto_cancel_pending_days": 3})
        assert await svc.get_order_expiry_windows(AsyncMock()) == ExpiryWindows(0, 3)

    async def test_unknown_group(self) -> None:
        svc, _ = _service()
        with pytest.raises(SettingGroupNotFoundError):
            await svc.get_group(AsyncMock(), "shipping")


class TestUpdateGroup:
    async def test_merges_and_commits(self) -> None:
        svc, repo = _service({"min_withdrawal_amount": 1000, "max_withdrawal_amount": 0})
        db = AsyncMock()

        result = await svc.update_group(db, "payment", {"max_withdrawal_amount": 500000})

        assert result == {"min_withdrawal_amount": 1000, "max_withdrawal_amount": 500000}
        repo.upsert_value.assert_awaited_once()
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()

    async def test_invalid_combination_rolls_back(self) -> None:
        svc, repo = _service({"min_withdrawal_amount": 1000, "max_withdrawal_amount": 0})
        db = AsyncMock()

        with pytest.raises(InvalidSettingError):
            await svc.update_group(db, "payment", {"max_withdrawal_amount": 10})

        repo.upsert_value.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_none_values_are_ignored(self) -> None:
        svc, _ = _service({"commission_rate_bps": 1200})
        result = await svc.update_group(AsyncMock(), "platform", {"commission_rate_bps": None})
        assert result == {"commission_rate_bps": 1200}
