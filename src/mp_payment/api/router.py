"""mp_payment REST API — checkout, verification and the Chapa callback."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.enums import PaymentProviderName
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import CallerIdentity, get_current_user
from src.mp_payment.application.schemas import InitializePaymentRequest, VerifyPaymentRequest
from src.mp_payment.application.service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])

_service = PaymentService()


@router.post("/initialize")
async def initialize_payment(
    body: InitializePaymentRequest,
    caller: Annotated[CallerIdentity, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.initialize_payment(db, body.order_id, body.provider.value, caller)
    return success_response(data.model_dump(), request)


@router.post("/verify")
async def verify_payment(
    body: VerifyPaymentRequest,
    _caller: Annotated[CallerIdentity, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.verify_payment(db, body.provider.value, body.reference)
    return success_response(data.model_dump(), request)


@router.get("/chapa/callback")
async def chapa_callback(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    trx_ref: str = Query(..., min_length=1, max_length=128),
) -> ApiResponse:
    """Server-to-server callback. The query string is untrusted; the outcome is re-verified."""
    data = await _service.verify_payment(db, PaymentProviderName.CHAPA.value, trx_ref)
    return success_response(data.model_dump(), request)
