"""Pydantic schemas for mp_ledger API."""

from pydantic import BaseModel

from src.mp_common.cents import cents_to_display


class SaleDetail(BaseModel):
    item_id: str
    title: str
    order_id: str
    sale_price_cents: int
    commission_cents: int
    earnings_cents: int
    earnings_display: str
    buyer_email: str
    sold_at: str | None


class EarningsSummaryResponse(BaseModel):
    seller_id: str
    lifetime_earnings_cents: int
    lifetime_earnings_display: str
    total_withdrawn_cents: int
    total_withdrawn_display: str
    available_balance_cents: int
    available_balance_display: str
    sales_count: int
    total_sales_cents: int
    total_commission_cents: int
    sales: list[SaleDetail]

    @classmethod
    def from_cents(
        cls,
        seller_id: str,
        lifetime: int,
        withdrawn: int,
        available: int,
        sales: list[SaleDetail],
    ) -> "EarningsSummaryResponse":
        return cls(
            seller_id=seller_id,
            lifetime_earnings_cents=lifetime,
            lifetime_earnings_display=cents_to_display(lifetime),
            total_withdrawn_cents=withdrawn,
            total_withdrawn_display=cents_to_display(withdrawn),
            available_balance_cents=available,
            available_balance_display=cents_to_display(available),
            sales_count=len(sales),
            total_sales_cents=sum(s.sale_price_cents for s in sales),
            total_commission_cents=sum(s.commission_cents for s in sales),
            sales=sales,
        )


class PlatformEarningItem(BaseModel):
    id: str
    order_id: str
    transaction_id: str | None
    amount_cents: int
    amount_display: str
    commission_bps: int
    buyer_email: str | None
    created_at: str


class PlatformEarningListResponse(BaseModel):
    items: list[PlatformEarningItem]
    total_earnings_cents: int
    total_earnings_display: str
    next_cursor: str | None
    has_more: bool
