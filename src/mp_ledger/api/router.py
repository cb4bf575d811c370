"""mp_ledger REST API — the caller's own earnings summary."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import CallerIdentity, get_current_user
from src.mp_ledger.application.service import EarningsService

router = APIRouter(prefix="/earnings", tags=["earnings"])

_service = EarningsService()


@router.get("/me")
async def get_my_earnings(
    caller: Annotated[CallerIdentity, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_summary(db, caller.id)
    return success_response(data.model_dump(), request)
