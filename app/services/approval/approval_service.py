import logging
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ProcessingError
from app.models.approval.approval_settings import ApprovalSettings
from app.models.shared.enums import RequestType
from app.schemas.approval.approval_settings_schema import (
    ApprovalSettingsResponse, ApprovalSettingsUpdate
)
from app.services.request.approval_ledger import ApprovalLedger

logger = logging.getLogger(__name__)

class ApprovalService:
    def __init__(self, session: AsyncSession, ledger: ApprovalLedger = None):
        self.session = session
        self.ledger = ledger or ApprovalLedger(session)

    # region ========== Approval Settings ==========

    def _to_response(self, request_type: RequestType, setting: ApprovalSettings = None) -> ApprovalSettingsResponse:
        chain = self.ledger.chain_for(request_type)
        return ApprovalSettingsResponse(
            request_type=request_type,
            is_enabled=setting.is_enabled if setting else True,
            approval_levels=len(chain),
            approver_roles=[level.approver_role for level in chain],
            updated_by=setting.updated_by if setting else None,
            updated_at=setting.updated_at if setting else None,
        )

    async def get_approval_settings(self) -> List[ApprovalSettingsResponse]:
        """Effective approval setting for every request type"""
        result = await self.session.execute(select(ApprovalSettings))
        by_type = {s.request_type: s for s in result.scalars().all()}
        return [self._to_response(t, by_type.get(t)) for t in RequestType]

    async def update_approval_setting(
        self,
        data: ApprovalSettingsUpdate,
        user_id: int
    ) -> ApprovalSettingsResponse:
        """Create or update the setting for one request type"""
        try:
            result = await self.session.execute(
                select(ApprovalSettings).where(ApprovalSettings.request_type == data.request_type)
            )
            setting = result.scalar_one_or_none()

            if setting:
                setting.is_enabled = data.is_enabled
                setting.updated_by = user_id
            else:
                setting = ApprovalSettings(
                    request_type=data.request_type,
                    is_enabled=data.is_enabled,
                    updated_by=user_id
                )
                self.session.add(setting)

            await self.session.commit()
            await self.session.refresh(setting)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error updating approval setting: {e}")
            raise ProcessingError("Error updating approval setting")

        logger.info(
            f"Approval {'enabled' if data.is_enabled else 'disabled'} "
            f"for {data.request_type.value} by user {user_id}"
        )
        return self._to_response(data.request_type, setting)

    # endregion
