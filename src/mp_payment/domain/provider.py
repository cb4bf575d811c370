"""PaymentProvider capability.

Implementations report SUCCESS only for a fully captured and settled payment.
Approved-but-uncaptured or captured-but-unsettled states are PENDING.
Transport failures raise PaymentProviderError.
"""

from typing import Protocol

from src.mp_payment.domain.models import CheckoutSession, PaymentVerification


class PaymentProvider(Protocol):
    name: str
    currency: str
    max_reference_length: int | None

    async def initialize(
        self,
        amount: int,
        currency: str,
        buyer_contact: str,
        reference: str,
    ) -> CheckoutSession: ...

    async def verify(self, provider_reference: str) -> PaymentVerification: ...
