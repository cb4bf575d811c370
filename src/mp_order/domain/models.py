"""Domain models for mp_order — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.mp_common.enums import ItemStatus, OrderStatus


@dataclass
class PurchasableItem:
    """Listing as seen at order time."""
    id: str
    seller_id: str
    title: str
    price: int          # cents, current listed price
    status: str         # ItemStatus value

    @property
    def is_purchasable(self) -> bool:
        return self.status == ItemStatus.APPROVED


@dataclass
class OrderItem:
    item_id: str
    seller_id: str      # snapshot
    title: str          # snapshot
    price: int          # cents, snapshot at creation, never updated
    quantity: int = 1
    order_id: str = ""

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


@dataclass
class Order:
    id: str
    buyer_id: str
    buyer_email: str
    total_amount: int   # cents, == sum(line_total) at creation
    status: str         # OrderStatus value
    items: list[OrderItem] = field(default_factory=list)
    cancel_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID

    @property
    def item_ids(self) -> list[str]:
        return [i.item_id for i in self.items]


@dataclass
class Transaction:
    id: str
    order_id: str
    amount: int         # cents
    status: str         # TransactionStatus value
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def commission_bps(self) -> int | None:
        """Rate captured at order time; None for legacy rows without it."""
        value = self.metadata.get("commission_bps")
        return int(value) if value is not None else None
