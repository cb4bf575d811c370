"""mp_order REST API — buyer-facing order endpoints, all require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.enums import OrderStatus
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import CallerIdentity, get_current_user
from src.mp_order.application.schemas import CancelOrderRequest, CreateOrderRequest, OrderResponse
from src.mp_order.application.service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])

_service = OrderService()


@router.post("", status_code=201)
async def create_order(
    body: CreateOrderRequest,
    caller: Annotated[CallerIdentity, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_order(db, caller, body)
    return success_response(data.model_dump(), request)


@router.get("")
async def list_my_orders(
    caller: Annotated[CallerIdentity, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: OrderStatus | None = Query(None),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_orders(
        db, caller.id, status.value if status else None, cursor, limit
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    caller: Annotated[CallerIdentity, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_order(db, order_id, caller)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    caller: Annotated[CallerIdentity, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    order = await _service.cancel_order(db, order_id, body.reason, caller)
    return success_response(OrderResponse.from_domain(order).model_dump(mode="json"), request)
