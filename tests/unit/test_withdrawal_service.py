"""Unit tests for WithdrawalService: request pipeline and admin transitions."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from config.settings import Settings
from src.mp_common.errors import (
    ActiveDisputeError,
    InsufficientBalanceError,
    InvalidPayoutDestinationError,
    InvalidWithdrawalTransitionError,
    PayoutDestinationNotFoundError,
    SellerNotEligibleError,
    WithdrawalAmountOutOfBoundsError,
    WithdrawalInFlightError,
    WithdrawalNotFoundError,
)
from src.mp_common.enums import WithdrawalStatus
from src.mp_gateway.auth.dependencies import CallerIdentity
from src.mp_notification.domain.events import WITHDRAWAL_REQUESTED, WITHDRAWAL_STATUS_CHANGED
from src.mp_settings.domain.models import WithdrawalBounds
from src.mp_withdrawal.application.service import WithdrawalService
from src.mp_withdrawal.domain.models import SellerProfile, StatusTotals, Withdrawal

SELLER = CallerIdentity(id="seller-1", email="seller@example.com", role="SELLER")
ADMIN = CallerIdentity(id="admin-1", email="admin@example.com", role="ADMIN")
PAYOUT = "seller@example.com"


def _withdrawal(status: str = "INITIATED", amount: int = 5000, **metadata: str) -> Withdrawal:
    return Withdrawal(
        id="w1", user_id=SELLER.id, payout_account=PAYOUT, amount=amount, status=status,
        metadata=dict(metadata),
    )


def _service(
    available: int = 20000,
    bounds: WithdrawalBounds = WithdrawalBounds(minimum=1000, maximum=0),
    channel: str = "paypal",
) -> tuple[WithdrawalService, AsyncMock, AsyncMock]:
    """Service whose every validation step passes by default."""
    repo = AsyncMock()
    repo.payout_account_belongs_to.return_value = True
    repo.get_seller_profile.return_value = SellerProfile(
        id=SELLER.id, email=SELLER.email, email_verified=True, banned=False
    )
    repo.count_active_disputes.return_value = 0
    repo.find_in_flight.return_value = None
    repo.insert.side_effect = lambda db, w: w
    earnings = AsyncMock()
    earnings.get_available_balance.return_value = available
    settings_service = AsyncMock()
    settings_service.get_withdrawal_bounds.return_value = bounds
    notifier = AsyncMock()
    svc = WithdrawalService(
        repo=repo,
        earnings=earnings,
        settings_service=settings_service,
        notifier=notifier,
        payout_channel=channel,
    )
    return svc, repo, notifier


class TestRequestWithdrawal:
    async def test_creates_initiated_withdrawal(self) -> None:
        svc, repo, notifier = _service()
        db = AsyncMock()

        result = await svc.request_withdrawal(db, SELLER, 5000, f"  {PAYOUT} ")

        assert result.status == "INITIATED"
        assert result.amount_cents == 5000
        assert result.payout_account == PAYOUT
        inserted: Withdrawal = repo.insert.call_args.args[1]
        assert inserted.metadata == {"payout_channel": "paypal"}
        db.commit.assert_awaited_once()
        event = notifier.publish.call_args.args[0]
        assert event.name == WITHDRAWAL_REQUESTED
        assert event.payload["seller_email"] == SELLER.email

    async def test_unknown_payout_account(self) -> None:
        svc, repo, _ = _service()
        repo.payout_account_belongs_to.return_value = False
        with pytest.raises(PayoutDestinationNotFoundError):
            await svc.request_withdrawal(AsyncMock(), SELLER, 5000, PAYOUT)
        repo.insert.assert_not_awaited()

    async def test_unverified_seller(self) -> None:
        svc, repo, _ = _service()
        repo.get_seller_profile.return_value = SellerProfile(
            id=SELLER.id, email=SELLER.email, email_verified=False, banned=False
        )
        with pytest.raises(SellerNotEligibleError):
            await svc.request_withdrawal(AsyncMock(), SELLER, 5000, PAYOUT)

    async def test_active_dispute(self) -> None:
        svc, repo, _ = _service()
        repo.count_active_disputes.return_value = 1
        with pytest.raises(ActiveDisputeError):
            await svc.request_withdrawal(AsyncMock(), SELLER, 5000, PAYOUT)

    async def test_insufficient_balance(self) -> None:
        svc, _, _ = _service(available=4999)
        with pytest.raises(InsufficientBalanceError):
            await svc.request_withdrawal(AsyncMock(), SELLER, 5000, PAYOUT)

    async def test_below_minimum(self) -> None:
        svc, _, _ = _service(bounds=WithdrawalBounds(minimum=10000, maximum=0))
        with pytest.raises(WithdrawalAmountOutOfBoundsError):
            await svc.request_withdrawal(AsyncMock(), SELLER, 5000, PAYOUT)

    async def test_in_flight_request_blocks(self) -> None:
        svc, repo, _ = _service()
        repo.find_in_flight.return_value = _withdrawal(status="PROCESSING")
        with pytest.raises(WithdrawalInFlightError):
            await svc.request_withdrawal(AsyncMock(), SELLER, 5000, PAYOUT)

    async def test_destination_must_match_channel(self) -> None:
        svc, _, _ = _service(channel="bank")
        with pytest.raises(InvalidPayoutDestinationError):
            await svc.request_withdrawal(AsyncMock(), SELLER, 5000, PAYOUT)

    async def test_first_failing_rule_wins(self) -> None:
        # Unknown destination and insufficient balance: ownership is checked first
        svc, repo, _ = _service(available=0)
        repo.payout_account_belongs_to.return_value = False
        with pytest.raises(PayoutDestinationNotFoundError):
            await svc.request_withdrawal(AsyncMock(), SELLER, 5000, PAYOUT)
        repo.get_seller_profile.assert_not_awaited()

    async def test_balance_checked_before_bounds(self) -> None:
        svc, _, _ = _service(available=100, bounds=WithdrawalBounds(minimum=10000, maximum=0))
        with pytest.raises(InsufficientBalanceError):
            await svc.request_withdrawal(AsyncMock(), SELLER, 5000, PAYOUT)


class TestUpdateStatus:
    async def test_initiated_to_processing(self) -> None:
        svc, repo, notifier = _service()
        repo.get.return_value = _withdrawal()
        repo.update_status.return_value = _withdrawal(status="PROCESSING", payout_status="SENT")
        db = AsyncMock()

        result = await svc.update_status(
            db, "w1", WithdrawalStatus.PROCESSING, ADMIN, payout_status="SENT"
        )

        assert result.status == "PROCESSING"
        assert result.payout_status == "SENT"
        args = repo.update_status.call_args.args
        assert args[2:4] == ("INITIATED", "PROCESSING")
        patch = args[4]
        assert patch["last_transition"]["by"] == ADMIN.id
        assert patch["payout_status"] == "SENT"
        assert "rejection_reason" not in patch
        db.commit.assert_awaited_once()
        event = notifier.publish.call_args.args[0]
        assert event.name == WITHDRAWAL_STATUS_CHANGED
        assert event.payload["from"] == "INITIATED"

    async def test_failed_records_reason(self) -> None:
        svc, repo, _ = _service()
        repo.get.return_value = _withdrawal()
        repo.update_status.return_value = _withdrawal(status="FAILED", rejection_reason="bad account")

        result = await svc.update_status(
            AsyncMock(), "w1", WithdrawalStatus.FAILED, ADMIN, reason="bad account"
        )

        assert result.rejection_reason == "bad account"
        assert repo.update_status.call_args.args[4]["rejection_reason"] == "bad account"

    async def test_terminal_state_rejected(self) -> None:
        svc, repo, _ = _service()
        repo.get.return_value = _withdrawal(status="COMPLETED")
        with pytest.raises(InvalidWithdrawalTransitionError):
            await svc.update_status(AsyncMock(), "w1", WithdrawalStatus.FAILED, ADMIN)
        repo.update_status.assert_not_awaited()

    async def test_refunded_not_reachable_by_transition(self) -> None:
        svc, repo, _ = _service()
        repo.get.return_value = _withdrawal(status="PROCESSING")
        with pytest.raises(InvalidWithdrawalTransitionError):
            await svc.update_status(AsyncMock(), "w1", WithdrawalStatus.REFUNDED, ADMIN)

    async def test_unknown_withdrawal(self) -> None:
        svc, repo, _ = _service()
        repo.get.return_value = None
        with pytest.raises(WithdrawalNotFoundError):
            await svc.update_status(AsyncMock(), "nope", WithdrawalStatus.PROCESSING, ADMIN)

    async def test_retry_blocked_by_other_in_flight(self) -> None:
        svc, repo, _ = _service()
        repo.get.return_value = _withdrawal(status="FAILED")
        other = _withdrawal(status="INITIATED")
        other.id = "w2"
        repo.find_in_flight.return_value = other

        with pytest.raises(WithdrawalInFlightError):
            await svc.update_status(AsyncMock(), "w1", WithdrawalStatus.INITIATED, ADMIN)

        repo.find_in_flight.assert_awaited_once()
        assert repo.find_in_flight.call_args.kwargs["exclude_id"] == "w1"

    async def test_retry_allowed(self) -> None:
        svc, repo, _ = _service()
        repo.get.return_value = _withdrawal(status="FAILED")
        repo.update_status.return_value = _withdrawal(status="PROCESSING")
        result = await svc.update_status(AsyncMock(), "w1", WithdrawalStatus.PROCESSING, ADMIN)
        assert result.status == "PROCESSING"

    async def test_lost_update_reports_current_status(self) -> None:
        svc, repo, _ = _service()
        repo.get.side_effect = [_withdrawal(), _withdrawal(status="FAILED")]
        repo.update_status.return_value = None
        db = AsyncMock()

        with pytest.raises(InvalidWithdrawalTransitionError) as exc_info:
            await svc.update_status(db, "w1", WithdrawalStatus.PROCESSING, ADMIN)

        assert "FAILED" in exc_info.value.message
        db.rollback.assert_awaited_once()


class TestCompleteWithdrawal:
    async def test_completes_when_balance_covers(self) -> None:
        svc, repo, _ = _service()
        repo.get.return_value = _withdrawal(status="PROCESSING")
        repo.complete_if_covered.return_value = _withdrawal(status="COMPLETED")
        db = AsyncMock()

        result = await svc.update_status(db, "w1", WithdrawalStatus.COMPLETED, ADMIN)

        assert result.status == "COMPLETED"
        repo.lock_seller_account.assert_awaited_once_with(db, SELLER.id)
        repo.update_status.assert_not_awaited()
        db.commit.assert_awaited_once()

    async def test_insufficient_balance_at_completion(self) -> None:
        svc, repo, notifier = _service(available=1000)
        repo.get.side_effect = [_withdrawal(status="PROCESSING"), _withdrawal(status="PROCESSING")]
        repo.complete_if_covered.return_value = None
        db = AsyncMock()

        with pytest.raises(InsufficientBalanceError):
            await svc.update_status(db, "w1", WithdrawalStatus.COMPLETED, ADMIN)

        db.rollback.assert_awaited_once()
        notifier.publish.assert_not_awaited()

    async def test_concurrent_status_change(self) -> None:
        svc, repo, _ = _service()
        repo.get.side_effect = [_withdrawal(status="PROCESSING"), _withdrawal(status="FAILED")]
        repo.complete_if_covered.return_value = None
        with pytest.raises(InvalidWithdrawalTransitionError):
            await svc.update_status(AsyncMock(), "w1", WithdrawalStatus.COMPLETED, ADMIN)


class TestRefundWithdrawal:
    async def test_refunds_completed(self) -> None:
        svc, repo, notifier = _service()
        repo.get.return_value = _withdrawal(status="COMPLETED")
        repo.update_status.return_value = _withdrawal(status="REFUNDED")

        result = await svc.refund_withdrawal(AsyncMock(), "w1", ADMIN, "returned by bank")

        assert result.status == "REFUNDED"
        args = repo.update_status.call_args.args
        assert args[2:4] == ("COMPLETED", "REFUNDED")
        assert args[4]["refund_reason"] == "returned by bank"
        assert notifier.publish.call_args.args[0].payload["reason"] == "returned by bank"

    async def test_initiated_not_refundable(self) -> None:
        svc, repo, _ = _service()
        repo.get.return_value = _withdrawal()
        with pytest.raises(InvalidWithdrawalTransitionError):
            await svc.refund_withdrawal(AsyncMock(), "w1", ADMIN, "x")
        repo.update_status.assert_not_awaited()


class TestReads:
    async def test_statistics_include_every_status(self) -> None:
        svc, repo, _ = _service()
        repo.totals_by_status.return_value = {
            "COMPLETED": StatusTotals(count=2, amount=15000),
            "INITIATED": StatusTotals(count=1, amount=5000),
        }

        stats = await svc.get_statistics(AsyncMock())

        assert set(stats.by_status) == {s.value for s in WithdrawalStatus}
        assert stats.by_status["FAILED"].count == 0
        assert stats.total_count == 3
        assert stats.total_amount_cents == 20000
        assert stats.total_amount_display == "200.00"

    async def test_list_passes_filters(self) -> None:
        svc, repo, _ = _service()
        repo.list_withdrawals.return_value = [_withdrawal()]

        page = await svc.list_withdrawals(AsyncMock(), None, "INITIATED", None, 20)

        assert page.has_more is False
        assert page.next_cursor is None
        assert repo.list_withdrawals.call_args.args[1:] == (None, "INITIATED", None, 21)


class TestPayoutChannelConfig:
    def test_unknown_channel_rejected_at_construction(self) -> None:
        with pytest.raises(ValueError):
            _service(channel="carrier-pigeon")

    def test_unknown_channel_rejected_at_settings_load(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, JWT_SECRET="x", PAYOUT_CHANNEL="carrier-pigeon")

    def test_bank_channel_accepted(self) -> None:
        assert Settings(_env_file=None, JWT_SECRET="x", PAYOUT_CHANNEL="bank").PAYOUT_CHANNEL == "bank"
