"""Pydantic schemas for the admin settings API. All fields optional: partial update."""

from pydantic import BaseModel, Field


class PlatformSettingsUpdate(BaseModel):
    commission_rate_bps: int | None = Field(None, ge=0, le=10000, description="1000 = 10%")


class PaymentSettingsUpdate(BaseModel):
    min_withdrawal_amount: int | None = Field(None, ge=0, description="cents")
    max_withdrawal_amount: int | None = Field(None, ge=0, description="cents, 0 = unlimited")


class OrderSettingsUpdate(BaseModel):
    order_expiration_hours: int | None = Field(None, ge=0, description="0 disables")
    auto_cancel_pending_days: int | None = Field(None, ge=0, description="0 disables")


UPDATE_SCHEMAS: dict[str, type[BaseModel]] = {
    "platform": PlatformSettingsUpdate,
    "payment": PaymentSettingsUpdate,
    "order": OrderSettingsUpdate,
}
