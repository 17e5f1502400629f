import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional
from sqlalchemy import select, func, or_, exists
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException

from app.auth.permissions import Actor, REQUEST_DELETE, authorize
from app.core.approval_chains import ApprovalChains
from app.core.exceptions import LinkageError, NotFoundError, ProcessingError
from app.core.logging import log_user_action
from app.db.base import utcnow
from app.models.finance.loan import Loan
from app.models.finance.personal_savings import PersonalSavings
from app.models.finance.savings import Savings
from app.models.member.biodata import Biodata
from app.models.request.request import Request
from app.models.request.request_approval import RequestApproval
from app.models.shared.enums import RequestModule, RequestStatus, RequestType
from app.schemas.common.pagination import PageMeta
from app.schemas.request.content_schema import validate_content, validate_linkage
from app.schemas.request.request_schema import RequestCreate, RequestResponse
from app.services.notification.notification_service import NotificationService
from app.services.request.approval_ledger import ApprovalLedger
from app.services.request.completion_executor import CompletionExecutor
from app.utils.date_time_serializer import serialize_dates

logger = logging.getLogger(__name__)

LINKAGE_MODELS = {
    "biodata_id": (Biodata, "Biodata"),
    "loan_id": (Loan, "Loan"),
    "savings_id": (Savings, "Savings account"),
    "personal_savings_id": (PersonalSavings, "Personal savings plan"),
}

SORTABLE_COLUMNS = {
    "created_at": Request.created_at,
    "updated_at": Request.updated_at,
    "status": Request.status,
    "type": Request.type,
    "priority": Request.priority,
}


@dataclass
class RequestFilter:
    type: Optional[RequestType] = None
    status: Optional[RequestStatus] = None
    module: Optional[RequestModule] = None
    initiator_id: Optional[int] = None
    assigned_to: Optional[int] = None
    biodata_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


def _day_start(value: date) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def date_range_conditions(column, start_date: Optional[date], end_date: Optional[date]) -> list:
    """Inclusive day range; a bare end date covers that whole day"""
    conditions = []
    if start_date:
        conditions.append(column >= _day_start(start_date))
    if end_date:
        if isinstance(end_date, datetime):
            conditions.append(column <= _day_start(end_date))
        else:
            conditions.append(column < _day_start(end_date) + timedelta(days=1))
    return conditions


class RequestService:
    def __init__(self, session: AsyncSession, chains: Optional[ApprovalChains] = None):
        self.session = session
        self.ledger = ApprovalLedger(session, chains)
        self.executor = CompletionExecutor(session)
        self.notifications = NotificationService(session)

    # region ========== Create ==========

    async def _check_linkage(self, linkage: Dict[str, Optional[int]]):
        for key, entity_id in linkage.items():
            if entity_id is None:
                continue
            model, label = LINKAGE_MODELS[key]
            if await self.session.get(model, entity_id) is None:
                raise LinkageError(f"{label} {entity_id} not found")

    async def create_request(
        self,
        data: RequestCreate,
        initiator_id: int,
        context: Optional[Dict[str, Optional[str]]] = None
    ) -> Request:
        """
        File a request together with its approval steps.
        A type with no required approval is completed on the spot.
        """
        validate_content(data.type, data.content)
        linkage = data.linkage()
        validate_linkage(data.type, linkage)

        try:
            await self._check_linkage(linkage)
            steps = await self.ledger.build_steps(data.type)

            request = Request(
                type=data.type,
                module=data.module,
                priority=data.priority,
                content=serialize_dates(data.content),
                extra_metadata=serialize_dates(data.metadata or {}),
                notes=data.notes,
                initiator_id=initiator_id,
                status=RequestStatus.PENDING if steps else RequestStatus.COMPLETED,
                next_approval_level=1 if steps else None,
                approval_steps=steps,
                **linkage,
            )
            if not steps:
                request.completed_at = utcnow()

            self.session.add(request)
            await self.session.flush()

            if not steps:
                await self.executor.execute(request)
                await self.notifications.notify_request_update(
                    request, "Request Completed",
                    f"Your {request.type.value.replace('_', ' ').lower()} request was applied; no approval was required",
                )
            else:
                await self.notifications.notify_request_update(
                    request, "Request Submitted",
                    f"Your {request.type.value.replace('_', ' ').lower()} request has been submitted for review",
                )

            await self.session.commit()
        except HTTPException:
            await self.session.rollback()
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating {data.type.value} request: {e}")
            raise ProcessingError("Error creating request")

        logger.info(
            f"Request {request.id} ({request.type.value}) created by user {initiator_id} "
            f"with {len(steps)} approval level(s)"
        )
        log_user_action(initiator_id, "CREATE_REQUEST", "request", request.id, context)
        return request

    # endregion

    # region ========== Read ==========

    async def get_request(self, request_id: str) -> Request:
        """Get a request with its steps ordered by level"""
        result = await self.session.execute(
            select(Request)
            .where(Request.id == request_id)
            .execution_options(populate_existing=True)
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFoundError(f"Request {request_id} not found")
        return request

    def _filter_conditions(self, filters: RequestFilter) -> list:
        conditions = []
        if filters.type:
            conditions.append(Request.type == filters.type)
        if filters.status:
            conditions.append(Request.status == filters.status)
        if filters.module:
            conditions.append(Request.module == filters.module)
        if filters.initiator_id is not None:
            conditions.append(Request.initiator_id == filters.initiator_id)
        if filters.biodata_id is not None:
            conditions.append(Request.biodata_id == filters.biodata_id)
        if filters.assigned_to is not None:
            acted_on = exists().where(
                RequestApproval.request_id == Request.id,
                RequestApproval.approver_id == filters.assigned_to,
            )
            conditions.append(or_(Request.assignee_id == filters.assigned_to, acted_on))
        conditions.extend(date_range_conditions(Request.created_at, filters.start_date, filters.end_date))
        return conditions

    async def list_requests(
        self,
        filters: Optional[RequestFilter] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> Dict[str, Any]:
        """Get paginated requests with filtering"""
        conditions = self._filter_conditions(filters or RequestFilter())

        total = await self.session.scalar(
            select(func.count(Request.id)).where(*conditions)
        )

        column = SORTABLE_COLUMNS.get(sort_by, Request.created_at)
        ordering = column.asc() if sort_order == "asc" else column.desc()

        result = await self.session.execute(
            select(Request)
            .where(*conditions)
            .order_by(ordering, Request.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        requests = result.scalars().all()

        return {
            "data": [RequestResponse.model_validate(r) for r in requests],
            "meta": PageMeta.build(total or 0, page, limit),
        }

    async def list_user_requests(self, user_id: int, filters: Optional[RequestFilter] = None,
                                 **kwargs) -> Dict[str, Any]:
        filters = filters or RequestFilter()
        filters.initiator_id = user_id
        return await self.list_requests(filters, **kwargs)

    # endregion

    # region ========== Delete ==========

    async def delete_request(
        self,
        request_id: str,
        actor: Actor,
        context: Optional[Dict[str, Optional[str]]] = None
    ) -> bool:
        """Administrative hard delete; bypasses the state machine"""
        request = await self.get_request(request_id)
        authorize(actor, REQUEST_DELETE, request)

        try:
            await self.session.delete(request)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deleting request {request_id}: {e}")
            raise ProcessingError("Error deleting request")

        logger.warning(f"Request {request_id} hard-deleted by user {actor.user_id}")
        log_user_action(actor.user_id, "DELETE_REQUEST", "request", request_id, context)
        return True

    # endregion
