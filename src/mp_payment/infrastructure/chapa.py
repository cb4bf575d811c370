"""Chapa adapter.

tx_ref is capped at 50 characters, so the caller passes an already-fitted
reference (see fit_reference). Verification is a single GET; only an API
status of "success" with a transaction status of "success" settles.
"""

import logging
from typing import Any

import httpx

from src.mp_common.cents import amount_to_cents, cents_to_amount_str
from src.mp_common.enums import PaymentProviderName, VerificationStatus
from src.mp_common.errors import PaymentProviderError
from src.mp_payment.domain.models import CheckoutSession, PaymentVerification
from src.mp_payment.infrastructure.http import HttpProviderClient

logger = logging.getLogger(__name__)

CHAPA_MAX_REFERENCE_LENGTH = 50

_STATUS_MAP = {
    "success": VerificationStatus.SUCCESS,
    "pending": VerificationStatus.PENDING,
}


class ChapaProvider(HttpProviderClient):
    name = PaymentProviderName.CHAPA.value
    max_reference_length: int | None = CHAPA_MAX_REFERENCE_LENGTH

    def __init__(
        self,
        secret_key: str,
        base_url: str,
        currency: str,
        callback_url: str,
        return_url: str,
        timeout: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout, client)
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self.currency = currency
        self._callback_url = callback_url
        self._return_url = return_url

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._secret_key}"}

    async def initialize(
        self,
        amount: int,
        currency: str,
        buyer_contact: str,
        reference: str,
    ) -> CheckoutSession:
        if len(reference) > CHAPA_MAX_REFERENCE_LENGTH:
            raise ValueError(f"Chapa tx_ref longer than {CHAPA_MAX_REFERENCE_LENGTH}: {reference}")
        payload = {
            "amount": cents_to_amount_str(amount),
            "currency": currency,
            "email": buyer_contact,
            "tx_ref": reference,
            "callback_url": self._callback_url,
            "return_url": f"{self._return_url}?tx_ref={reference}",
        }
        _, body = await self._json(
            "POST", f"{self._base_url}/transaction/initialize", json=payload, headers=self._headers()
        )
        checkout_url = (body.get("data") or {}).get("checkout_url")
        if body.get("status") != "success" or not checkout_url:
            raise PaymentProviderError(self.name, f"initialize rejected: {body.get('message')}")
        logger.info("Chapa checkout created for %s", reference)
        return CheckoutSession(checkout_url=checkout_url, provider_reference=reference)

    async def verify(self, provider_reference: str) -> PaymentVerification:
        _, body = await self._json(
            "GET",
            f"{self._base_url}/transaction/verify/{provider_reference}",
            headers=self._headers(),
        )
        data: dict[str, Any] = body.get("data") or {}
        status = VerificationStatus.FAILED
        if body.get("status") == "success":
            status = _STATUS_MAP.get(str(data.get("status", "")).lower(), VerificationStatus.FAILED)
        try:
            amount = amount_to_cents(data.get("amount") or 0)
        except ValueError as exc:
            raise PaymentProviderError(self.name, f"unreadable amount {data.get('amount')!r}") from exc
        return PaymentVerification(
            status=status,
            amount=amount,
            currency=str(data.get("currency") or self.currency),
            buyer_contact=data.get("email"),
            normalized_reference=data.get("tx_ref") or provider_reference,
            provider_reference=provider_reference,
            raw=data,
        )
