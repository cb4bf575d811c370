"""mp_withdrawal REST API — seller-facing endpoints. Admin review lives in mp_admin."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import CallerIdentity, get_current_user
from src.mp_withdrawal.application.schemas import RequestWithdrawalRequest
from src.mp_withdrawal.application.service import WithdrawalService

router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])

_service = WithdrawalService()


@router.post("", status_code=201)
async def request_withdrawal(
    body: RequestWithdrawalRequest,
    caller: Annotated[CallerIdentity, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.request_withdrawal(db, caller, body.amount_cents, body.payout_account)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/me")
async def list_my_withdrawals(
    caller: Annotated[CallerIdentity, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_withdrawals(db, caller.id, None, cursor, limit)
    return success_response(data.model_dump(mode="json"), request)
