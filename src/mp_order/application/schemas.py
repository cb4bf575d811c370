"""Pydantic schemas for mp_order API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.mp_common.cents import cents_to_display
from src.mp_common.enums import PaymentProviderName
from src.mp_order.domain.models import Order, OrderItem

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class OrderLineRequest(BaseModel):
    item_id: str = Field(..., min_length=1, max_length=64)
    # Not range-checked here: unique items reject quantity != 1 with a typed error
    quantity: int = 1


class ShippingInfo(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=2, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    phone: str | None = Field(None, max_length=30)


class CreateOrderRequest(BaseModel):
    items: list[OrderLineRequest]
    shipping: ShippingInfo
    payment_method: PaymentProviderName


class CancelOrderRequest(BaseModel):
    reason: str = Field("Cancelled by buyer", max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OrderItemResponse(BaseModel):
    item_id: str
    seller_id: str
    title: str
    price_cents: int
    price_display: str
    quantity: int

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            item_id=item.item_id,
            seller_id=item.seller_id,
            title=item.title,
            price_cents=item.price,
            price_display=cents_to_display(item.price),
            quantity=item.quantity,
        )


class OrderResponse(BaseModel):
    id: str
    buyer_id: str
    buyer_email: str
    status: str
    total_amount_cents: int
    total_amount_display: str
    cancel_reason: str | None
    items: list[OrderItemResponse]
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            buyer_id=order.buyer_id,
            buyer_email=order.buyer_email,
            status=order.status,
            total_amount_cents=order.total_amount,
            total_amount_display=cents_to_display(order.total_amount),
            cancel_reason=order.cancel_reason,
            items=[OrderItemResponse.from_domain(i) for i in order.items],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderSummaryResponse(BaseModel):
    order_id: str
    reference: str
    status: str
    payment_method: str
    commission_rate_bps: int
    subtotal_cents: int
    platform_fee_cents: int    # informational: already included in the subtotal
    total_amount_cents: int
    total_amount_display: str
    items: list[OrderItemResponse]


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    next_cursor: str | None
    has_more: bool
