"""PayPal adapter (Orders v2, intent CAPTURE).

A PayPal order is two-phase: the buyer approves it, then we capture it.
`verify` captures transparently when it sees APPROVED and reports SUCCESS
only when both the order and its first capture are COMPLETED.
"""

import logging
import time
from typing import Any

import httpx

from src.mp_common.cents import amount_to_cents, cents_to_amount_str
from src.mp_common.enums import PaymentProviderName, VerificationStatus
from src.mp_common.errors import PaymentProviderError
from src.mp_payment.domain.models import CheckoutSession, PaymentVerification
from src.mp_payment.infrastructure.http import HttpProviderClient

logger = logging.getLogger(__name__)

PAYPAL_BASE_URLS = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}

_PENDING_ORDER_STATES = {"CREATED", "SAVED", "APPROVED", "PAYER_ACTION_REQUIRED"}
_DECLINED_CAPTURE_STATES = {"DECLINED", "FAILED"}


class PayPalProvider(HttpProviderClient):
    name = PaymentProviderName.PAYPAL.value
    max_reference_length: int | None = 127  # purchase_units[].reference_id

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        mode: str,
        currency: str,
        return_url: str,
        cancel_url: str,
        timeout: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout, client)
        self._client_id = client_id
        self._client_secret = client_secret
        self._base_url = PAYPAL_BASE_URLS.get(mode, PAYPAL_BASE_URLS["sandbox"])
        self.currency = currency
        self._return_url = return_url
        self._cancel_url = cancel_url
        self._token: str | None = None
        self._token_expires_at = 0.0

    async def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token
        _, body = await self._json(
            "POST",
            f"{self._base_url}/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self._client_id, self._client_secret),
        )
        token = body.get("access_token")
        if not token:
            raise PaymentProviderError(self.name, "no access token in OAuth response")
        # Refresh a minute early
        self._token = str(token)
        self._token_expires_at = time.monotonic() + int(body.get("expires_in", 0)) - 60
        return self._token

    async def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {await self._access_token()}",
            "Content-Type": "application/json",
        }

    async def initialize(
        self,
        amount: int,
        currency: str,
        buyer_contact: str,
        reference: str,
    ) -> CheckoutSession:
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": reference,
                    "custom_id": reference,
                    "amount": {"currency_code": currency, "value": cents_to_amount_str(amount)},
                }
            ],
            "application_context": {
                "return_url": self._return_url,
                "cancel_url": self._cancel_url,
                "user_action": "PAY_NOW",
            },
        }
        _, body = await self._json(
            "POST", f"{self._base_url}/v2/checkout/orders", json=payload, headers=await self._headers()
        )
        approve_url = next(
            (
                link.get("href")
                for link in body.get("links", [])
                if link.get("rel") in ("approve", "payer-action")
            ),
            None,
        )
        if not body.get("id") or not approve_url:
            raise PaymentProviderError(self.name, "order created without an approval link")
        logger.info("PayPal order %s created for %s", body["id"], reference)
        return CheckoutSession(checkout_url=str(approve_url), provider_reference=str(body["id"]))

    async def _get_order(self, paypal_order_id: str) -> dict[str, Any]:
        _, body = await self._json(
            "GET",
            f"{self._base_url}/v2/checkout/orders/{paypal_order_id}",
            headers=await self._headers(),
        )
        return body

    async def _capture(self, paypal_order_id: str) -> dict[str, Any]:
        status_code, body = await self._json(
            "POST",
            f"{self._base_url}/v2/checkout/orders/{paypal_order_id}/capture",
            json={},
            headers={**await self._headers(), "Prefer": "return=representation"},
            allow_status=(422,),
        )
        if status_code == 422:
            issues = {d.get("issue") for d in body.get("details", [])}
            if "ORDER_ALREADY_CAPTURED" in issues:
                # A concurrent verify won the capture
                return await self._get_order(paypal_order_id)
            raise PaymentProviderError(self.name, f"capture declined: {', '.join(map(str, issues))}")
        return body

    async def verify(self, provider_reference: str) -> PaymentVerification:
        order = await self._get_order(provider_reference)
        if order.get("status") == "APPROVED":
            logger.info("PayPal order %s approved, capturing", provider_reference)
            order = await self._capture(provider_reference)

        unit: dict[str, Any] = (order.get("purchase_units") or [{}])[0]
        captures: list[dict[str, Any]] = (unit.get("payments") or {}).get("captures") or []
        capture = captures[0] if captures else {}
        order_status = order.get("status")
        capture_status = capture.get("status")

        if capture_status in _DECLINED_CAPTURE_STATES:
            raise PaymentProviderError(self.name, f"capture {capture_status.lower()}")
        if order_status == "COMPLETED" and capture_status == "COMPLETED":
            status = VerificationStatus.SUCCESS
        elif order_status == "COMPLETED" or order_status in _PENDING_ORDER_STATES:
            status = VerificationStatus.PENDING
        else:
            status = VerificationStatus.FAILED

        money = capture.get("amount") or unit.get("amount") or {}
        try:
            amount = amount_to_cents(money.get("value") or 0)
        except ValueError as exc:
            raise PaymentProviderError(self.name, f"unreadable amount {money!r}") from exc
        return PaymentVerification(
            status=status,
            amount=amount if status == VerificationStatus.SUCCESS else 0,
            currency=str(money.get("currency_code") or self.currency),
            buyer_contact=(order.get("payer") or {}).get("email_address"),
            normalized_reference=unit.get("reference_id"),
            provider_reference=provider_reference,
            raw={"status": order_status, "capture_id": capture.get("id"), "capture_status": capture_status},
        )
