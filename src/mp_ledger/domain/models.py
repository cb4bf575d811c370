"""Domain models for mp_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class PlatformEarning:
    id: str
    order_id: str           # unique: one earning per settled order
    transaction_id: str | None
    amount: int             # cents of commission retained
    commission_bps: int
    order_data: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass
class SaleRecord:
    """Seller's sold item joined to its paid order (read model)."""
    item_id: str
    title: str
    order_id: str
    price: int
    quantity: int
    order_total: int
    buyer_email: str
    sold_at: datetime | None
    order_commission: int | None      # PlatformEarning.amount, None if not recorded yet
    commission_bps: int | None        # rate stored on the order's transaction

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


@dataclass(frozen=True)
class BalanceSnapshot:
    lifetime_earnings: int
    total_withdrawn: int

    @property
    def available(self) -> int:
        return max(0, self.lifetime_earnings - self.total_withdrawn)
