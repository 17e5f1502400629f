import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.api.dependencies import get_current_actor, require_action
from app.auth.permissions import Actor, SETTINGS_MANAGE
from app.core.database import get_async_session
from app.schemas.approval.approval_settings_schema import (
    ApprovalSettingsResponse,
    ApprovalSettingsUpdate
)
from app.schemas.common.envelope import ApiResponse
from app.services.approval.approval_service import ApprovalService

router = APIRouter()
logger = logging.getLogger(__name__)

# region ========== Approval Settings ==========

@router.get("/settings", response_model=ApiResponse[List[ApprovalSettingsResponse]])
async def get_approval_settings(
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor)
):
    """Approval chain and on/off switch for every request type"""
    service = ApprovalService(session)
    return ApiResponse(
        message="Approval settings retrieved successfully",
        data=await service.get_approval_settings()
    )

@router.put("/settings", response_model=ApiResponse[ApprovalSettingsResponse])
async def update_approval_setting(
    setting: ApprovalSettingsUpdate,
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(require_action(SETTINGS_MANAGE))
):
    """Enable or disable approval for a request type (super admin only)"""
    service = ApprovalService(session)
    return ApiResponse(
        message="Approval setting updated successfully",
        data=await service.update_approval_setting(setting, actor.user_id)
    )

# endregion
