"""Admin REST API — order oversight, withdrawal review and the commission report.

Every endpoint requires the ADMIN role.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.enums import OrderStatus, WithdrawalStatus
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import CallerIdentity, require_admin
from src.mp_ledger.application.service import EarningsService
from src.mp_order.application.schemas import OrderResponse
from src.mp_order.application.service import OrderService
from src.mp_withdrawal.application.schemas import (
    RefundWithdrawalRequest,
    UpdateWithdrawalStatusRequest,
)
from src.mp_withdrawal.application.service import WithdrawalService

router = APIRouter(prefix="/admin", tags=["admin"])

_orders = OrderService()
_withdrawals = WithdrawalService()
_earnings = EarningsService()

Admin = Annotated[CallerIdentity, Depends(require_admin)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@router.get("/orders")
async def list_orders(
    _admin: Admin,
    db: Db,
    request: Request,
    status: OrderStatus | None = Query(None),
    cursor: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _orders.list_orders(db, None, status.value if status else None, cursor, limit)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/orders/{order_id}/resettle")
async def resettle_order(order_id: str, _admin: Admin, db: Db, request: Request) -> ApiResponse:
    order = await _orders.resettle_order(db, order_id)
    return success_response(OrderResponse.from_domain(order).model_dump(mode="json"), request)


# ---------------------------------------------------------------------------
# Withdrawals
# ---------------------------------------------------------------------------


@router.get("/withdrawals")
async def list_withdrawals(
    _admin: Admin,
    db: Db,
    request: Request,
    status: WithdrawalStatus | None = Query(None),
    seller_id: str | None = Query(None),
    cursor: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _withdrawals.list_withdrawals(
        db, seller_id, status.value if status else None, cursor, limit
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/withdrawals/statistics")
async def withdrawal_statistics(_admin: Admin, db: Db, request: Request) -> ApiResponse:
    data = await _withdrawals.get_statistics(db)
    return success_response(data.model_dump(), request)


@router.get("/withdrawals/{withdrawal_id}")
async def get_withdrawal(
    withdrawal_id: str, _admin: Admin, db: Db, request: Request
) -> ApiResponse:
    data = await _withdrawals.get_withdrawal(db, withdrawal_id)
    return success_response(data.model_dump(mode="json"), request)


@router.patch("/withdrawals/{withdrawal_id}/status")
async def update_withdrawal_status(
    withdrawal_id: str,
    body: UpdateWithdrawalStatusRequest,
    admin: Admin,
    db: Db,
    request: Request,
) -> ApiResponse:
    data = await _withdrawals.update_status(
        db, withdrawal_id, body.status, admin, body.reason, body.payout_status
    )
    return success_response(data.model_dump(mode="json"), request)


@router.post("/withdrawals/{withdrawal_id}/refund")
async def refund_withdrawal(
    withdrawal_id: str,
    body: RefundWithdrawalRequest,
    admin: Admin,
    db: Db,
    request: Request,
) -> ApiResponse:
    data = await _withdrawals.refund_withdrawal(db, withdrawal_id, admin, body.reason)
    return success_response(data.model_dump(mode="json"), request)


# ---------------------------------------------------------------------------
# Platform earnings
# ---------------------------------------------------------------------------


@router.get("/platform-earnings")
async def list_platform_earnings(
    _admin: Admin,
    db: Db,
    request: Request,
    cursor: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _earnings.list_platform_earnings(db, cursor, limit)
    return success_response(data.model_dump(), request)
