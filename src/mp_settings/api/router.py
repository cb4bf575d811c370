"""mp_settings admin REST API — read and partially update a settings group."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.errors import InvalidSettingError, SettingGroupNotFoundError
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import CallerIdentity, require_admin
from src.mp_settings.application.schemas import UPDATE_SCHEMAS
from src.mp_settings.application.service import SettingsService

router = APIRouter(prefix="/admin/settings", tags=["admin-settings"])

_service = SettingsService()


@router.get("/{group}")
async def get_settings(
    group: str,
    _admin: Annotated[CallerIdentity, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_group(db, group)
    return success_response(data, request)


@router.put("/{group}")
async def update_settings(
    group: str,
    body: Annotated[dict[str, Any], Body()],
    admin: Annotated[CallerIdentity, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    schema = UPDATE_SCHEMAS.get(group)
    if schema is None:
        raise SettingGroupNotFoundError(group)
    try:
        changes = schema.model_validate(body).model_dump(exclude_none=True)
    except ValidationError as exc:
        raise InvalidSettingError(exc.errors()[0]["msg"]) from None
    data = await _service.update_group(db, group, changes)
    return success_response(data, request)
