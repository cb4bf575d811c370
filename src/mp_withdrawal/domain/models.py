"""Domain models for mp_withdrawal — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Withdrawal:
    id: str
    user_id: str
    payout_account: str
    amount: int         # cents
    status: str         # WithdrawalStatus value
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def rejection_reason(self) -> str | None:
        return self.metadata.get("rejection_reason")

    @property
    def payout_status(self) -> str | None:
        return self.metadata.get("payout_status")


@dataclass
class SellerProfile:
    id: str
    email: str
    email_verified: bool
    banned: bool


@dataclass
class StatusTotals:
    count: int = 0
    amount: int = 0     # cents
