import logging
from datetime import date
from fastapi import APIRouter, Depends, Query, Path, Request as HttpRequest, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.api.dependencies import get_current_actor, require_action
from app.auth.permissions import Actor, REQUEST_LIST, REQUEST_VIEW, authorize
from app.core.config import settings
from app.core.database import get_async_session
from app.core.exceptions import InvalidTransitionError
from app.core.request_context import get_request_context
from app.models.shared.enums import RequestModule, RequestStatus, RequestType
from app.schemas.common.envelope import ApiResponse, PaginatedResponse
from app.schemas.request.request_schema import (
    RequestCreate,
    RequestResponse,
    RequestStatistics,
    RequestStatusUpdate
)
from app.services.request.request_query_service import RequestQueryService
from app.services.request.request_service import RequestFilter, RequestService
from app.services.request.transition_engine import TransitionEngine

router = APIRouter()
logger = logging.getLogger(__name__)

PAGE = Query(1, ge=1, description="Page number")
LIMIT = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Page size")
SORT_BY = Query("created_at", description="created_at, updated_at, status, type or priority")
SORT_ORDER = Query("desc", pattern="^(asc|desc)$")

# region ========== Create & List ==========

@router.post("", response_model=ApiResponse[RequestResponse], status_code=status.HTTP_201_CREATED)
async def create_request(
    data: RequestCreate,
    request: HttpRequest,
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor)
):
    """File a new request; its approval chain is created with it"""
    service = RequestService(session)
    created = await service.create_request(data, actor.user_id, get_request_context(request))
    return ApiResponse(
        message="Request created successfully",
        data=RequestResponse.model_validate(created)
    )

@router.get("", response_model=PaginatedResponse[RequestResponse])
async def list_requests(
    type: Optional[RequestType] = Query(None),
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    module: Optional[RequestModule] = Query(None),
    initiator_id: Optional[int] = Query(None),
    assigned_to: Optional[int] = Query(None),
    biodata_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = PAGE,
    limit: int = LIMIT,
    sort_by: str = SORT_BY,
    sort_order: str = SORT_ORDER,
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(require_action(REQUEST_LIST))
):
    """List all requests (staff only)"""
    filters = RequestFilter(
        type=type,
        status=status_filter,
        module=module,
        initiator_id=initiator_id,
        assigned_to=assigned_to,
        biodata_id=biodata_id,
        start_date=start_date,
        end_date=end_date,
    )
    result = await RequestService(session).list_requests(filters, page, limit, sort_by, sort_order)
    return PaginatedResponse(message="Requests retrieved successfully", **result)

@router.get("/user", response_model=PaginatedResponse[RequestResponse])
async def list_user_requests(
    type: Optional[RequestType] = Query(None),
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = PAGE,
    limit: int = LIMIT,
    sort_by: str = SORT_BY,
    sort_order: str = SORT_ORDER,
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor)
):
    """Requests filed by the caller"""
    result = await RequestService(session).list_user_requests(
        actor.user_id,
        RequestFilter(type=type, status=status_filter),
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return PaginatedResponse(message="User requests retrieved successfully", **result)

# endregion

# region ========== Approver Views ==========

@router.get("/pending", response_model=PaginatedResponse[RequestResponse])
async def list_pending_approvals(
    page: int = PAGE,
    limit: int = LIMIT,
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor)
):
    """Requests whose current approval step the caller can act on"""
    result = await RequestQueryService(session).pending_for_actor(actor, page, limit)
    return PaginatedResponse(message="Pending approvals retrieved successfully", **result)

@router.get("/pending-count", response_model=ApiResponse[dict])
async def get_pending_count(
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor)
):
    count = await RequestQueryService(session).pending_count(actor)
    return ApiResponse(message="Pending count retrieved successfully", data={"count": count})

@router.get("/statistics", response_model=ApiResponse[RequestStatistics])
async def get_request_statistics(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    biodata_id: Optional[int] = Query(None),
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(require_action(REQUEST_LIST))
):
    """Request counts by status and type (staff only)"""
    stats = await RequestQueryService(session).statistics(start_date, end_date, biodata_id)
    return ApiResponse(message="Request statistics retrieved successfully", data=stats)

# endregion

# region ========== Single Request ==========

@router.get("/{request_id}", response_model=ApiResponse[RequestResponse])
async def get_request(
    request_id: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor)
):
    """Get one request with its approval steps"""
    found = await RequestService(session).get_request(request_id)
    authorize(actor, REQUEST_VIEW, found)
    return ApiResponse(
        message="Request retrieved successfully",
        data=RequestResponse.model_validate(found)
    )

@router.put("/{request_id}", response_model=ApiResponse[RequestResponse])
async def update_request_status(
    data: RequestStatusUpdate,
    request: HttpRequest,
    request_id: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor)
):
    """
    Move a request through its workflow.

    IN_REVIEW claims the current step, REVIEWED or APPROVED signs it off,
    REJECTED rejects it (notes required), COMPLETED processes an approved
    request and CANCELLED withdraws it.
    """
    engine = TransitionEngine(session)
    context = get_request_context(request)

    if data.status == RequestStatus.IN_REVIEW:
        updated = await engine.mark_in_review(request_id, actor, data.notes, data.level, context)
        message = "Request marked as in review"
    elif data.status in (RequestStatus.REVIEWED, RequestStatus.APPROVED):
        updated = await engine.approve_step(request_id, actor, data.notes, data.level, context)
        message = "Request approved successfully"
    elif data.status == RequestStatus.REJECTED:
        updated = await engine.reject_step(request_id, actor, data.notes, data.level, context)
        message = "Request rejected successfully"
    elif data.status == RequestStatus.COMPLETED:
        updated = await engine.complete_request(request_id, data.notes, actor, context)
        message = "Request completed successfully"
    elif data.status == RequestStatus.CANCELLED:
        updated = await engine.cancel_request(request_id, actor, data.notes, context)
        message = "Request cancelled successfully"
    else:
        raise InvalidTransitionError(f"Cannot move a request to {data.status.value}")

    return ApiResponse(message=message, data=RequestResponse.model_validate(updated))

@router.delete("/{request_id}", response_model=ApiResponse[None])
async def delete_request(
    request: HttpRequest,
    request_id: str = Path(...),
    session: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor)
):
    """Hard delete (super admin only)"""
    await RequestService(session).delete_request(request_id, actor, get_request_context(request))
    return ApiResponse(message="Request deleted successfully")

# endregion
