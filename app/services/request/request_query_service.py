import logging
from datetime import date
from typing import Any, Dict, Optional
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.permissions import Actor
from app.models.request.request import Request
from app.models.request.request_approval import RequestApproval
from app.models.shared.enums import ACTIONABLE_STATUSES, ApprovalStepStatus, RequestStatus
from app.schemas.common.pagination import PageMeta
from app.schemas.request.request_schema import RequestResponse, RequestStatistics
from app.services.request.request_service import date_range_conditions

logger = logging.getLogger(__name__)

class RequestQueryService:
    """Read-only views over requests; nothing here is cached or stored"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _pending_conditions(self, actor: Actor) -> Optional[list]:
        """None when the actor can't act on anything"""
        if actor.role is None or actor.approval_level < 1 or actor.role_expired() or not actor.is_active:
            return None

        conditions = [
            RequestApproval.status.in_((ApprovalStepStatus.PENDING, ApprovalStepStatus.IN_PROGRESS)),
            RequestApproval.level <= actor.approval_level,
            Request.status.in_(ACTIONABLE_STATUSES),
        ]
        if not actor.is_super_admin:
            conditions.append(RequestApproval.approver_role == actor.role)
        return conditions

    def _pending_join(self):
        return and_(
            RequestApproval.request_id == Request.id,
            RequestApproval.level == Request.next_approval_level,
        )

    async def pending_for_actor(self, actor: Actor, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Requests whose current step this actor could act on, oldest first"""
        conditions = self._pending_conditions(actor)
        if conditions is None:
            return {"data": [], "meta": PageMeta.build(0, page, limit)}

        total = await self.session.scalar(
            select(func.count(Request.id))
            .join(RequestApproval, self._pending_join())
            .where(*conditions)
        )
        result = await self.session.execute(
            select(Request)
            .join(RequestApproval, self._pending_join())
            .where(*conditions)
            .order_by(Request.created_at.asc(), Request.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        requests = result.scalars().all()

        return {
            "data": [RequestResponse.model_validate(r) for r in requests],
            "meta": PageMeta.build(total or 0, page, limit),
        }

    async def pending_count(self, actor: Actor) -> int:
        """
        Approvers get the size of their pending queue; everybody else the
        number of their own requests still moving through approval.
        """
        conditions = self._pending_conditions(actor)
        if conditions is not None:
            count = await self.session.scalar(
                select(func.count(Request.id))
                .join(RequestApproval, self._pending_join())
                .where(*conditions)
            )
        else:
            count = await self.session.scalar(
                select(func.count(Request.id)).where(
                    Request.initiator_id == actor.user_id,
                    Request.status.in_(ACTIONABLE_STATUSES),
                )
            )
        return count or 0

    async def statistics(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        biodata_id: Optional[int] = None
    ) -> RequestStatistics:
        conditions = date_range_conditions(Request.created_at, start_date, end_date)
        if biodata_id is not None:
            conditions.append(Request.biodata_id == biodata_id)

        status_rows = await self.session.execute(
            select(Request.status, func.count(Request.id))
            .where(*conditions)
            .group_by(Request.status)
        )
        by_status = {status: count for status, count in status_rows.all()}

        type_rows = await self.session.execute(
            select(Request.type, func.count(Request.id))
            .where(*conditions)
            .group_by(Request.type)
        )
        by_type = {request_type.value: count for request_type, count in type_rows.all()}

        return RequestStatistics(
            total=sum(by_status.values()),
            pending=by_status.get(RequestStatus.PENDING, 0),
            in_review=by_status.get(RequestStatus.IN_REVIEW, 0),
            reviewed=by_status.get(RequestStatus.REVIEWED, 0),
            approved=by_status.get(RequestStatus.APPROVED, 0),
            rejected=by_status.get(RequestStatus.REJECTED, 0),
            completed=by_status.get(RequestStatus.COMPLETED, 0),
            cancelled=by_status.get(RequestStatus.CANCELLED, 0),
            by_type=by_type,
        )
