"""PaymentService — checkout initialization and the verify-then-settle handler.

Verification outcomes:
  success -> OrderService.complete_order (amount must cover the order total)
  pending -> order left PENDING
  failed  -> order cancelled, transaction FAILED
Provider errors propagate and leave the order untouched.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import OrderStatus, VerificationStatus
from src.mp_common.errors import (
    OrderNotFoundError,
    OrderNotPayableError,
    PaymentAmountMismatchError,
)
from src.mp_gateway.auth.dependencies import CallerIdentity
from src.mp_order.application.service import OrderService
from src.mp_order.domain.repository import OrderRepositoryProtocol
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_payment.application.schemas import (
    InitializePaymentResponse,
    VerifyPaymentResponse,
)
from src.mp_payment.domain.models import PaymentVerification
from src.mp_payment.domain.reference import fresh_reference, parse_reference
from src.mp_payment.infrastructure.registry import ProviderRegistry

logger = logging.getLogger(__name__)


def _unique(references: list[str]) -> list[str]:
    return list(dict.fromkeys(r for r in references if r))


def _used_references(metadata: dict[str, Any]) -> list[str]:
    """Every reference already sent to a provider for this order."""
    return _unique(
        [
            *metadata.get("references", []),
            metadata.get("tx_ref", ""),
            metadata.get("provider_reference", ""),
        ]
    )


class PaymentService:
    def __init__(
        self,
        orders: OrderService | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        providers: ProviderRegistry | None = None,
    ) -> None:
        self._order_repo: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._orders = orders or OrderService(repo=self._order_repo)
        self._providers = providers or ProviderRegistry()

    async def initialize_payment(
        self, db: AsyncSession, order_id: str, provider_name: str, caller: CallerIdentity
    ) -> InitializePaymentResponse:
        order = await self._order_repo.get_order(db, order_id)
        if order is None or order.buyer_id != caller.id:
            raise OrderNotFoundError(order_id)
        if order.status != OrderStatus.PENDING:
            raise OrderNotPayableError(order_id, order.status)

        provider = self._providers.get(provider_name)
        transaction = await self._order_repo.get_transaction(db, order_id)
        used = _used_references(transaction.metadata if transaction else {})
        canonical, reference = fresh_reference(order_id, used, provider.max_reference_length)

        session = await provider.initialize(
            order.total_amount, provider.currency, order.buyer_email, reference
        )
        try:
            await self._order_repo.merge_transaction_metadata(
                db,
                order_id,
                {
                    "provider": provider.name,
                    "tx_ref": canonical,
                    "provider_reference": session.provider_reference,
                    "references": _unique([*used, canonical, reference, session.provider_reference]),
                },
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Payment initialized for order %s via %s (%s)",
            order_id, provider.name, session.provider_reference,
        )
        return InitializePaymentResponse(
            order_id=order_id,
            provider=provider.name,
            checkout_url=session.checkout_url,
            provider_reference=session.provider_reference,
            amount_cents=order.total_amount,
            currency=provider.currency,
        )

    async def _resolve_order_id(
        self, db: AsyncSession, provider_reference: str, verification: PaymentVerification
    ) -> str:
        candidates = [provider_reference]
        if verification.normalized_reference:
            candidates.append(verification.normalized_reference)
        for reference in candidates:
            order_id = await self._order_repo.find_order_id_by_reference(db, reference)
            if order_id:
                return order_id
        # Unshortened references carry the order id directly
        for reference in candidates:
            parsed = parse_reference(reference)
            if parsed is not None:
                return parsed[0]
        raise OrderNotFoundError(provider_reference)

    async def verify_payment(
        self, db: AsyncSession, provider_name: str, provider_reference: str
    ) -> VerifyPaymentResponse:
        provider = self._providers.get(provider_name)
        verification = await provider.verify(provider_reference)
        order_id = await self._resolve_order_id(db, provider_reference, verification)
        order = await self._order_repo.get_order(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        if verification.status == VerificationStatus.SUCCESS:
            if verification.amount < order.total_amount:
                raise PaymentAmountMismatchError(
                    provider.name, order.total_amount, verification.amount
                )
            order = await self._orders.complete_order(
                db,
                order_id,
                provider_reference,
                provider.name,
                verification.to_metadata(provider.name),
            )
        elif verification.status == VerificationStatus.FAILED and order.status == OrderStatus.PENDING:
            order = await self._orders.cancel_order(
                db, order_id, f"Payment failed at {provider.name}"
            )
        else:
            logger.info(
                "Payment for order %s is %s at %s", order_id, verification.status.value, provider.name
            )

        return VerifyPaymentResponse(
            order_id=order_id,
            order_status=order.status,
            verification_status=verification.status.value,
            provider=provider.name,
            provider_reference=provider_reference,
        )
