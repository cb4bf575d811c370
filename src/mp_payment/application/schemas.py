"""Pydantic schemas for mp_payment API."""

from pydantic import BaseModel, Field

from src.mp_common.enums import PaymentProviderName


class InitializePaymentRequest(BaseModel):
    order_id: str = Field(..., min_length=1, max_length=64)
    provider: PaymentProviderName


class VerifyPaymentRequest(BaseModel):
    provider: PaymentProviderName
    reference: str = Field(..., min_length=1, max_length=128, description="tx_ref or PayPal order id")


class InitializePaymentResponse(BaseModel):
    order_id: str
    provider: str
    checkout_url: str
    provider_reference: str
    amount_cents: int
    currency: str


class VerifyPaymentResponse(BaseModel):
    order_id: str
    order_status: str
    verification_status: str
    provider: str
    provider_reference: str
