"""OrderService — order creation, exactly-once completion and cancellation.

Completion runs in three DB transactions:
  1. order PAID + transaction COMPLETED + items SOLD (all-or-nothing)
  2. seller accrual              } EarningsService.record_settlement
  3. platform earning            }
Once (1) commits the order stays PAID: the provider has captured the money.
A failure in (2) or (3) is logged and raised as PartialSettlementError;
`resettle_order` replays both steps for reconciliation.
"""

import logging
from dataclasses import replace
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.cents import calculate_commission, cents_to_display
from src.mp_common.enums import OrderStatus, TransactionStatus
from src.mp_common.errors import (
    OrderNotCancellableError,
    OrderNotFoundError,
    OrderNotPayableError,
    PartialSettlementError,
)
from src.mp_common.id_generator import generate_id
from src.mp_common.pagination import cursor_decode, cursor_encode
from src.mp_gateway.auth.dependencies import CallerIdentity
from src.mp_ledger.application.service import EarningsService
from src.mp_ledger.domain.commission import split_order
from src.mp_notification.domain.events import (
    ORDER_CANCELLED,
    ORDER_SETTLED,
    DomainEvent,
    NotificationPort,
)
from src.mp_notification.infrastructure.redis_publisher import RedisNotificationPublisher
from src.mp_order.application.schemas import (
    CreateOrderRequest,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
    OrderSummaryResponse,
)
from src.mp_order.domain.models import Order, OrderItem, Transaction
from src.mp_order.domain.repository import OrderRepositoryProtocol
from src.mp_order.infrastructure.persistence import OrderRepository
from src.mp_payment.domain.reference import build_reference
from src.mp_risk.rules.order_items import (
    check_items_present,
    check_not_self_purchase,
    check_purchasable,
    check_unique_items,
    check_unit_quantity,
)
from src.mp_settings.application.service import SettingsService

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        settings_service: SettingsService | None = None,
        earnings: EarningsService | None = None,
        notifier: NotificationPort | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._settings = settings_service or SettingsService()
        self._earnings = earnings or EarningsService()
        self._notifier: NotificationPort = notifier or RedisNotificationPublisher()

    # ------------------------------------------------------------------
    # CreateOrder
    # ------------------------------------------------------------------

    async def create_order(
        self, db: AsyncSession, caller: CallerIdentity, req: CreateOrderRequest
    ) -> OrderSummaryResponse:
        item_ids = [line.item_id for line in req.items]
        check_items_present(item_ids)
        check_unique_items(item_ids)
        for line in req.items:
            check_unit_quantity(line.item_id, line.quantity)

        listings = await self._repo.get_items_for_purchase(db, item_ids)
        check_purchasable(item_ids, listings)
        check_not_self_purchase(caller.id, listings)

        rate_bps = await self._settings.get_commission_rate_bps(db)
        by_id = {item.id: item for item in listings}
        order_id = generate_id()
        lines = [
            OrderItem(
                order_id=order_id,
                item_id=line.item_id,
                seller_id=by_id[line.item_id].seller_id,
                title=by_id[line.item_id].title,
                price=by_id[line.item_id].price,
                quantity=line.quantity,
            )
            for line in req.items
        ]
        subtotal = sum(line.line_total for line in lines)
        platform_fee = sum(calculate_commission(line.line_total, rate_bps) for line in lines)
        reference = build_reference(order_id)

        order = Order(
            id=order_id,
            buyer_id=caller.id,
            buyer_email=caller.email,
            total_amount=subtotal,
            status=OrderStatus.PENDING.value,
            items=lines,
        )
        transaction = Transaction(
            id=generate_id(),
            order_id=order_id,
            amount=subtotal,
            status=TransactionStatus.INITIATED.value,
            metadata={
                "tx_ref": reference,
                "commission_bps": rate_bps,
                "subtotal": subtotal,
                "platform_fee": platform_fee,
                "payment_method": req.payment_method.value,
                "shipping": req.shipping.model_dump(),
            },
        )
        try:
            await self._repo.create_order(db, order, transaction)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Order %s created by %s: %d item(s), total %d cents",
            order_id, caller.id, len(lines), subtotal,
        )
        return OrderSummaryResponse(
            order_id=order_id,
            reference=reference,
            status=order.status,
            payment_method=req.payment_method.value,
            commission_rate_bps=rate_bps,
            subtotal_cents=subtotal,
            platform_fee_cents=platform_fee,
            total_amount_cents=subtotal,
            total_amount_display=cents_to_display(subtotal),
            items=[OrderItemResponse.from_domain(line) for line in lines],
        )

    # ------------------------------------------------------------------
    # CompleteOrder
    # ------------------------------------------------------------------

    async def complete_order(
        self,
        db: AsyncSession,
        order_id: str,
        provider_reference: str,
        provider: str,
        verification: dict[str, Any] | None = None,
    ) -> Order:
        order = await self._repo.get_order(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.is_paid:
            logger.info("Order %s already paid, completion is a no-op", order_id)
            return order

        patch = {
            **(verification or {}),
            "provider": provider,
            "provider_reference": provider_reference,
        }
        transaction: Transaction | None = None
        sold: list[str] = []
        try:
            transitioned = await self._repo.mark_order_paid(db, order_id)
            if transitioned:
                transaction = await self._repo.complete_transaction(db, order_id, patch)
                sold = await self._repo.mark_items_sold(db, order.item_ids)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if not transitioned:
            # Lost the race to a concurrent completion, or the order moved on
            current = await self._repo.get_order(db, order_id)
            if current is None:
                raise OrderNotFoundError(order_id)
            if not current.is_paid:
                raise OrderNotPayableError(order_id, current.status)
            return current

        already_sold = sorted(set(order.item_ids) - set(sold))
        if already_sold:
            logger.warning(
                "Order %s paid but items %s were already SOLD; needs manual review",
                order_id, already_sold,
            )

        paid = replace(order, status=OrderStatus.PAID.value, cancel_reason=None)
        await self._settle(db, paid, transaction)
        logger.info("Order %s settled via %s (%s)", order_id, provider, provider_reference)
        return paid

    async def resettle_order(self, db: AsyncSession, order_id: str) -> Order:
        """Replay seller accrual and platform earning for a PAID order."""
        order = await self._repo.get_order(db, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not order.is_paid:
            raise OrderNotPayableError(order_id, order.status)
        transaction = await self._repo.get_transaction(db, order_id)
        await self._settle(db, order, transaction, remove_from_cart=False)
        return order

    async def _settle(
        self,
        db: AsyncSession,
        order: Order,
        transaction: Transaction | None,
        remove_from_cart: bool = True,
    ) -> None:
        rate_bps = transaction.commission_bps if transaction else None
        if rate_bps is None:
            rate_bps = await self._settings.get_commission_rate_bps(db)
        split = split_order(order.items, rate_bps)

        failed = await self._earnings.record_settlement(
            db, order, transaction.id if transaction else None, split
        )
        if remove_from_cart:
            await self._remove_from_cart(db, order)
        if failed:
            logger.error(
                "PARTIAL SETTLEMENT: order %s is PAID but %s failed; reconcile via resettle",
                order.id, ", ".join(failed),
            )
            raise PartialSettlementError(order.id, failed)

        await self._notifier.publish(
            DomainEvent(
                name=ORDER_SETTLED,
                payload={
                    "order_id": order.id,
                    "buyer_id": order.buyer_id,
                    "buyer_email": order.buyer_email,
                    "total_amount": order.total_amount,
                    "platform_commission": split.total_commission,
                    "seller_amounts": split.seller_totals,
                },
            )
        )

    async def _remove_from_cart(self, db: AsyncSession, order: Order) -> None:
        try:
            await self._repo.remove_from_cart(db, order.buyer_id, order.item_ids)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.warning("Cart cleanup failed for order %s", order.id, exc_info=True)

    # ------------------------------------------------------------------
    # Cancel / read
    # ------------------------------------------------------------------

    async def cancel_order(
        self,
        db: AsyncSession,
        order_id: str,
        reason: str,
        caller: CallerIdentity | None = None,
    ) -> Order:
        order = await self._get_visible(db, order_id, caller)
        if order.status == OrderStatus.CANCELLED:
            return order
        if order.status != OrderStatus.PENDING:
            raise OrderNotCancellableError(order_id, order.status)

        try:
            cancelled = await self._repo.cancel_pending_order(db, order_id, reason)
            if cancelled:
                await self._repo.fail_transactions(db, [order_id], reason)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if not cancelled:
            current = await self._repo.get_order(db, order_id)
            if current is not None and current.status == OrderStatus.CANCELLED:
                return current
            raise OrderNotCancellableError(order_id, current.status if current else "UNKNOWN")

        logger.info("Order %s cancelled: %s", order_id, reason)
        await self._notifier.publish(
            DomainEvent(
                name=ORDER_CANCELLED,
                payload={"order_id": order_id, "buyer_id": order.buyer_id, "reason": reason},
            )
        )
        return replace(order, status=OrderStatus.CANCELLED.value, cancel_reason=reason)

    async def _get_visible(
        self, db: AsyncSession, order_id: str, caller: CallerIdentity | None
    ) -> Order:
        order = await self._repo.get_order(db, order_id)
        # Other buyers' orders are reported as missing
        if order is None or (
            caller is not None and not caller.is_admin and order.buyer_id != caller.id
        ):
            raise OrderNotFoundError(order_id)
        return order

    async def get_order(
        self, db: AsyncSession, order_id: str, caller: CallerIdentity
    ) -> OrderResponse:
        return OrderResponse.from_domain(await self._get_visible(db, order_id, caller))

    async def list_orders(
        self,
        db: AsyncSession,
        buyer_id: str | None,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> OrderListResponse:
        """Newest first; `buyer_id=None` lists every order (admin view)."""
        cursor_id = cursor_decode(cursor)
        orders = await self._repo.list_orders(db, buyer_id, status, cursor_id, limit + 1)
        has_more = len(orders) > limit
        page = orders[:limit]
        return OrderListResponse(
            items=[OrderResponse.from_domain(o) for o in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )
