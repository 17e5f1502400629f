import logging
from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.approval_chains import ApprovalChains, ChainLevel, DEFAULT_APPROVAL_CHAINS
from app.models.approval.approval_settings import ApprovalSettings
from app.models.request.request_approval import RequestApproval
from app.models.shared.enums import ApprovalStepStatus, RequestType

logger = logging.getLogger(__name__)

class ApprovalLedger:
    """
    Turns the static chain table into per-request approval steps.
    Steps are created once, when the request is filed; later changes to the
    chain table or the approval settings don't touch requests in flight.
    """

    def __init__(self, session: AsyncSession, chains: Optional[ApprovalChains] = None):
        self.session = session
        self.chains = chains if chains is not None else DEFAULT_APPROVAL_CHAINS

    def chain_for(self, request_type: RequestType) -> Tuple[ChainLevel, ...]:
        return tuple(self.chains.get(request_type, ()))

    async def is_approval_enabled(self, request_type: RequestType) -> bool:
        """A type without a settings row requires approval"""
        result = await self.session.execute(
            select(ApprovalSettings.is_enabled).where(ApprovalSettings.request_type == request_type)
        )
        enabled = result.scalar_one_or_none()
        return True if enabled is None else bool(enabled)

    async def required_levels(self, request_type: RequestType) -> Tuple[ChainLevel, ...]:
        if not await self.is_approval_enabled(request_type):
            logger.info(f"Approval disabled for {request_type.value}, no steps required")
            return ()
        return self.chain_for(request_type)

    async def build_steps(self, request_type: RequestType) -> List[RequestApproval]:
        """Unsaved steps for levels 1..N, all PENDING"""
        return [
            RequestApproval(
                level=index,
                status=ApprovalStepStatus.PENDING,
                approver_role=chain_level.approver_role,
            )
            for index, chain_level in enumerate(await self.required_levels(request_type), start=1)
        ]
