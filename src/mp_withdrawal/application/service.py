"""WithdrawalService — request validation pipeline and the admin state machine.

RequestWithdrawal checks run in a fixed order and stop at the first failure:
  1. payout account belongs to one of the seller's listings
  2. seller exists, email verified, not banned
  3. no dispute IN_PROGRESS against the seller
  4. available balance covers the amount
  5. amount within the configured [min, max] (max 0 = unbounded)
  6. no other withdrawal INITIATED or PROCESSING
  7. payout account format matches the payout channel
New requests are INITIATED and wait for administrative review.
"""

import logging
from typing import Any, NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.mp_common.cents import cents_to_display
from src.mp_common.datetime_utils import utc_now
from src.mp_common.enums import PayoutChannel, WithdrawalStatus
from src.mp_common.errors import (
    InsufficientBalanceError,
    InvalidWithdrawalTransitionError,
    WithdrawalNotFoundError,
)
from src.mp_common.id_generator import generate_id
from src.mp_common.pagination import cursor_decode, cursor_encode
from src.mp_gateway.auth.dependencies import CallerIdentity
from src.mp_ledger.application.service import EarningsService
from src.mp_notification.domain.events import (
    WITHDRAWAL_REQUESTED,
    WITHDRAWAL_STATUS_CHANGED,
    DomainEvent,
    NotificationPort,
)
from src.mp_notification.infrastructure.redis_publisher import RedisNotificationPublisher
from src.mp_risk.rules.payout_destination import (
    check_destination_format,
    check_destination_owned,
)
from src.mp_risk.rules.seller_standing import check_account_standing, check_no_active_disputes
from src.mp_risk.rules.withdrawal_limits import (
    check_no_in_flight,
    check_sufficient_balance,
    check_within_bounds,
)
from src.mp_settings.application.service import SettingsService
from src.mp_withdrawal.application.schemas import (
    StatusStatistics,
    WithdrawalDetailResponse,
    WithdrawalListResponse,
    WithdrawalResponse,
    WithdrawalStatisticsResponse,
)
from src.mp_withdrawal.domain.models import Withdrawal
from src.mp_withdrawal.domain.repository import WithdrawalRepositoryProtocol
from src.mp_withdrawal.domain.state_machine import (
    ensure_refundable,
    ensure_transition,
    reopens_request,
)
from src.mp_withdrawal.infrastructure.persistence import WithdrawalRepository

logger = logging.getLogger(__name__)


class WithdrawalService:
    def __init__(
        self,
        repo: WithdrawalRepositoryProtocol | None = None,
        earnings: EarningsService | None = None,
        settings_service: SettingsService | None = None,
        notifier: NotificationPort | None = None,
        payout_channel: str | None = None,
    ) -> None:
        self._repo: WithdrawalRepositoryProtocol = repo or WithdrawalRepository()
        self._earnings = earnings or EarningsService()
        self._settings = settings_service or SettingsService()
        self._notifier: NotificationPort = notifier or RedisNotificationPublisher()
        self._payout_channel = PayoutChannel(payout_channel or settings.PAYOUT_CHANNEL).value

    async def request_withdrawal(
        self, db: AsyncSession, caller: CallerIdentity, amount: int, payout_account: str
    ) -> WithdrawalResponse:
        seller_id = caller.id
        payout_account = payout_account.strip()

        check_destination_owned(
            await self._repo.payout_account_belongs_to(db, seller_id, payout_account)
        )
        check_account_standing(seller_id, await self._repo.get_seller_profile(db, seller_id))
        check_no_active_disputes(await self._repo.count_active_disputes(db, seller_id))
        check_sufficient_balance(
            await self._earnings.get_available_balance(db, seller_id), amount
        )
        check_within_bounds(amount, await self._settings.get_withdrawal_bounds(db))
        check_no_in_flight(await self._repo.find_in_flight(db, seller_id))
        check_destination_format(payout_account, self._payout_channel)

        withdrawal = Withdrawal(
            id=generate_id(),
            user_id=seller_id,
            payout_account=payout_account,
            amount=amount,
            status=WithdrawalStatus.INITIATED.value,
            metadata={"payout_channel": self._payout_channel},
        )
        try:
            withdrawal = await self._repo.insert(db, withdrawal)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Withdrawal %s requested by %s: %d cents", withdrawal.id, seller_id, amount
        )
        await self._notifier.publish(
            DomainEvent(
                name=WITHDRAWAL_REQUESTED,
                payload={
                    "withdrawal_id": withdrawal.id,
                    "seller_id": seller_id,
                    "seller_email": caller.email,
                    "amount": amount,
                },
            )
        )
        return WithdrawalResponse.from_domain(withdrawal)

    async def _get(self, db: AsyncSession, withdrawal_id: str) -> Withdrawal:
        withdrawal = await self._repo.get(db, withdrawal_id)
        if withdrawal is None:
            raise WithdrawalNotFoundError(withdrawal_id)
        return withdrawal

    async def _raise_for_lost_update(
        self, db: AsyncSession, withdrawal_id: str, target: str
    ) -> NoReturn:
        current = await self._get(db, withdrawal_id)
        raise InvalidWithdrawalTransitionError(current.status, target)

    async def update_status(
        self,
        db: AsyncSession,
        withdrawal_id: str,
        new_status: WithdrawalStatus,
        admin: CallerIdentity,
        reason: str | None = None,
        payout_status: str | None = None,
    ) -> WithdrawalResponse:
        withdrawal = await self._get(db, withdrawal_id)
        target = new_status.value
        ensure_transition(withdrawal.status, target)
        if reopens_request(withdrawal.status, target):
            check_no_in_flight(
                await self._repo.find_in_flight(db, withdrawal.user_id, exclude_id=withdrawal.id)
            )

        patch: dict[str, Any] = {
            "last_transition": {
                "from": withdrawal.status,
                "to": target,
                "by": admin.id,
                "at": utc_now().isoformat(),
            }
        }
        if target == WithdrawalStatus.FAILED and reason:
            patch["rejection_reason"] = reason
        if payout_status:
            patch["payout_status"] = payout_status

        try:
            if target == WithdrawalStatus.COMPLETED:
                # Serialize completions for this seller, then re-check the balance in SQL
                await self._repo.lock_seller_account(db, withdrawal.user_id)
                updated = await self._repo.complete_if_covered(
                    db, withdrawal.id, withdrawal.status, patch
                )
                if updated is None:
                    current = await self._get(db, withdrawal.id)
                    if current.status != withdrawal.status:
                        raise InvalidWithdrawalTransitionError(current.status, target)
                    available = await self._earnings.get_available_balance(db, withdrawal.user_id)
                    raise InsufficientBalanceError(withdrawal.amount, available)
            else:
                updated = await self._repo.update_status(
                    db, withdrawal.id, withdrawal.status, target, patch
                )
                if updated is None:
                    await self._raise_for_lost_update(db, withdrawal.id, target)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Withdrawal %s: %s -> %s by %s", withdrawal.id, withdrawal.status, target, admin.id
        )
        await self._publish_status_change(updated, withdrawal.status, reason)
        return WithdrawalResponse.from_domain(updated)

    async def refund_withdrawal(
        self, db: AsyncSession, withdrawal_id: str, admin: CallerIdentity, reason: str
    ) -> WithdrawalResponse:
        """Administrative action: the payout came back from the provider."""
        withdrawal = await self._get(db, withdrawal_id)
        ensure_refundable(withdrawal.status)
        patch = {
            "refund_reason": reason,
            "last_transition": {
                "from": withdrawal.status,
                "to": WithdrawalStatus.REFUNDED.value,
                "by": admin.id,
                "at": utc_now().isoformat(),
            },
        }
        try:
            updated = await self._repo.update_status(
                db, withdrawal.id, withdrawal.status, WithdrawalStatus.REFUNDED.value, patch
            )
            if updated is None:
                await self._raise_for_lost_update(db, withdrawal.id, WithdrawalStatus.REFUNDED.value)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Withdrawal %s refunded by %s: %s", withdrawal.id, admin.id, reason)
        await self._publish_status_change(updated, withdrawal.status, reason)
        return WithdrawalResponse.from_domain(updated)

    async def _publish_status_change(
        self, withdrawal: Withdrawal, previous: str, reason: str | None
    ) -> None:
        await self._notifier.publish(
            DomainEvent(
                name=WITHDRAWAL_STATUS_CHANGED,
                payload={
                    "withdrawal_id": withdrawal.id,
                    "seller_id": withdrawal.user_id,
                    "amount": withdrawal.amount,
                    "from": previous,
                    "to": withdrawal.status,
                    "reason": reason,
                },
            )
        )

    async def get_withdrawal(
        self, db: AsyncSession, withdrawal_id: str
    ) -> WithdrawalDetailResponse:
        withdrawal = await self._get(db, withdrawal_id)
        summary = await self._earnings.get_summary(db, withdrawal.user_id)
        return WithdrawalDetailResponse(
            withdrawal=WithdrawalResponse.from_domain(withdrawal),
            seller_earnings=summary,
        )

    async def list_withdrawals(
        self,
        db: AsyncSession,
        seller_id: str | None,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> WithdrawalListResponse:
        """Newest first; `seller_id=None` lists all sellers (admin queue)."""
        cursor_id = cursor_decode(cursor)
        rows = await self._repo.list_withdrawals(db, seller_id, status, cursor_id, limit + 1)
        has_more = len(rows) > limit
        page = rows[:limit]
        return WithdrawalListResponse(
            items=[WithdrawalResponse.from_domain(w) for w in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )

    async def get_statistics(self, db: AsyncSession) -> WithdrawalStatisticsResponse:
        totals = await self._repo.totals_by_status(db)
        by_status = {
            status.value: StatusStatistics(
                count=totals[status.value].count if status.value in totals else 0,
                total_amount_cents=totals[status.value].amount if status.value in totals else 0,
            )
            for status in WithdrawalStatus
        }
        total_amount = sum(s.total_amount_cents for s in by_status.values())
        return WithdrawalStatisticsResponse(
            total_count=sum(s.count for s in by_status.values()),
            total_amount_cents=total_amount,
            total_amount_display=cents_to_display(total_amount),
            by_status=by_status,
        )
