"""Pydantic schemas for mp_withdrawal API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.mp_common.cents import cents_to_display
from src.mp_common.enums import WithdrawalStatus
from src.mp_ledger.application.schemas import EarningsSummaryResponse
from src.mp_withdrawal.domain.models import Withdrawal

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class RequestWithdrawalRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Amount to withdraw in cents")
    payout_account: str = Field(..., min_length=1, max_length=255)


class UpdateWithdrawalStatusRequest(BaseModel):
    status: WithdrawalStatus
    reason: str | None = Field(None, max_length=500, description="Stored as rejection reason on FAILED")
    payout_status: str | None = Field(None, max_length=100, description="Provider payout status")


class RefundWithdrawalRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WithdrawalResponse(BaseModel):
    id: str
    user_id: str
    payout_account: str
    amount_cents: int
    amount_display: str
    status: str
    rejection_reason: str | None
    payout_status: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_domain(cls, w: Withdrawal) -> "WithdrawalResponse":
        return cls(
            id=w.id,
            user_id=w.user_id,
            payout_account=w.payout_account,
            amount_cents=w.amount,
            amount_display=cents_to_display(w.amount),
            status=w.status,
            rejection_reason=w.rejection_reason,
            payout_status=w.payout_status,
            created_at=w.created_at,
            updated_at=w.updated_at,
        )


class WithdrawalDetailResponse(BaseModel):
    withdrawal: WithdrawalResponse
    seller_earnings: EarningsSummaryResponse


class WithdrawalListResponse(BaseModel):
    items: list[WithdrawalResponse]
    next_cursor: str | None
    has_more: bool


class StatusStatistics(BaseModel):
    count: int
    total_amount_cents: int


class WithdrawalStatisticsResponse(BaseModel):
    total_count: int
    total_amount_cents: int
    total_amount_display: str
    by_status: dict[str, StatusStatistics]
