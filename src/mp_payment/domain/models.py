"""Domain models for mp_payment — normalized provider results."""

from dataclasses import dataclass, field
from typing import Any

from src.mp_common.enums import VerificationStatus


@dataclass
class CheckoutSession:
    checkout_url: str
    provider_reference: str   # what the provider will hand back on verify


@dataclass
class PaymentVerification:
    status: VerificationStatus
    amount: int                          # cents actually captured/charged
    currency: str
    buyer_contact: str | None
    normalized_reference: str | None     # our TX-... reference as echoed by the provider
    provider_reference: str
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == VerificationStatus.SUCCESS

    def to_metadata(self, provider: str) -> dict[str, Any]:
        """Subset merged into the transaction metadata on completion."""
        return {
            "provider": provider,
            "provider_reference": self.provider_reference,
            "verified_amount": self.amount,
            "verified_currency": self.currency,
            "payer_contact": self.buyer_contact,
            "verification_status": self.status.value,
        }
