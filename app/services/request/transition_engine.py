"""
Request state machine.

    PENDING --review--> IN_REVIEW --approve--> REVIEWED --...--> APPROVED --complete--> COMPLETED
       |                    |                     |
       +------reject / cancel (REJECTED, CANCELLED)+

Every public method is one unit of work: load the request (row-locked where
the database supports it), validate, mutate, commit. Concurrent writers are
caught by the version column on `requests` and reported as stale.
"""
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError
from fastapi import HTTPException

from app.auth.permissions import (
    Actor, authorize,
    REQUEST_REVIEW, REQUEST_APPROVE, REQUEST_REJECT, REQUEST_COMPLETE, REQUEST_CANCEL,
)
from app.core.approval_chains import POST_APPROVAL_PROCESSING
from app.core.exceptions import (
    InvalidTransitionError, NotFoundError, ProcessingError, StaleStateError, ValidationError
)
from app.core.logging import log_user_action
from app.db.base import utcnow
from app.models.request.request import Request
from app.models.request.request_approval import RequestApproval
from app.models.shared.enums import ACTIONABLE_STATUSES, ApprovalStepStatus, RequestStatus
from app.services.notification.notification_service import NotificationService
from app.services.request.completion_executor import CompletionExecutor

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = "Request cancelled by user"

OPEN_STEP_STATUSES = (ApprovalStepStatus.PENDING, ApprovalStepStatus.IN_PROGRESS)


def _label(request: Request) -> str:
    return request.type.value.replace("_", " ").lower()


class TransitionEngine:
    def __init__(self, session: AsyncSession, post_approval_processing=POST_APPROVAL_PROCESSING):
        self.session = session
        self.post_approval_processing = frozenset(post_approval_processing)
        self.executor = CompletionExecutor(session)
        self.notifications = NotificationService(session)

    # region ========== Helpers ==========

    async def _load(self, request_id: str) -> Request:
        result = await self.session.execute(
            select(Request)
            .options(selectinload(Request.approval_steps))
            .where(Request.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFoundError(f"Request {request_id} not found")
        return request

    async def _load_actionable(self, request_id: str, level: Optional[int]) -> Request:
        request = await self._load(request_id)
        if request.status not in ACTIONABLE_STATUSES:
            raise InvalidTransitionError(
                f"Cannot act on an approval step of a {request.status.value} request"
            )
        if level is not None and level != request.next_approval_level:
            raise StaleStateError(
                f"Level {level} is no longer current; request is at level {request.next_approval_level}"
            )
        return request

    @staticmethod
    def _open_step(request: Request) -> RequestApproval:
        step = request.current_step()
        if step is None or step.status not in OPEN_STEP_STATUSES:
            raise StaleStateError(
                f"Approval level {request.next_approval_level} has already been acted upon"
            )
        return step

    @asynccontextmanager
    async def _unit_of_work(self, request_id: str, action: str):
        try:
            yield
            await self.session.commit()
        except HTTPException:
            await self.session.rollback()
            raise
        except StaleDataError:
            await self.session.rollback()
            logger.warning(f"Concurrent update detected while trying to {action} request {request_id}")
            raise StaleStateError()
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error trying to {action} request {request_id}: {e}")
            raise ProcessingError(f"Error processing request: failed to {action}")

    def _audit(self, actor: Optional[Actor], action: str, request: Request,
               context: Optional[Dict[str, Optional[str]]]):
        logger.info(
            f"Request {request.id} -> {request.status.value} ({action}) "
            f"by user {actor.user_id if actor else 'system'}"
        )
        if actor is not None:
            log_user_action(actor.user_id, action, "request", request.id, context)

    # endregion

    # region ========== Step Actions ==========

    async def mark_in_review(
        self,
        request_id: str,
        actor: Actor,
        notes: Optional[str] = None,
        level: Optional[int] = None,
        context: Optional[Dict[str, Optional[str]]] = None
    ) -> Request:
        """Claim the current step. Repeating the claim is a no-op for the same actor."""
        async with self._unit_of_work(request_id, "review"):
            request = await self._load_actionable(request_id, level)
            authorize(actor, REQUEST_REVIEW, request)
            step = self._open_step(request)

            if step.status == ApprovalStepStatus.IN_PROGRESS:
                if step.approver_id == actor.user_id:
                    return request
                raise StaleStateError(
                    f"Approval level {step.level} is already being reviewed by another approver"
                )

            step.status = ApprovalStepStatus.IN_PROGRESS
            step.approver_id = actor.user_id
            if notes:
                step.notes = notes

            if request.status == RequestStatus.PENDING:
                request.status = RequestStatus.IN_REVIEW
            request.assignee_id = actor.user_id
            request.updated_at = utcnow()

            await self.notifications.notify_request_update(
                request, "Request Under Review",
                f"Your {_label(request)} request is being reviewed at level {step.level}",
                notify_approvers=False,
            )

        self._audit(actor, "REVIEW_REQUEST", request, context)
        return request

    async def approve_step(
        self,
        request_id: str,
        actor: Actor,
        notes: Optional[str] = None,
        level: Optional[int] = None,
        context: Optional[Dict[str, Optional[str]]] = None
    ) -> Request:
        """Sign off the current level and advance, approve or complete the request"""
        async with self._unit_of_work(request_id, "approve"):
            request = await self._load_actionable(request_id, level)
            authorize(actor, REQUEST_APPROVE, request)
            step = self._open_step(request)

            now = utcnow()
            step.status = ApprovalStepStatus.APPROVED
            step.approver_id = actor.user_id
            step.approved_at = now
            if notes:
                step.notes = notes

            request.approver_id = actor.user_id
            request.updated_at = now

            final_level = max(s.level for s in request.approval_steps)
            if step.level < final_level:
                request.next_approval_level = step.level + 1
                request.status = RequestStatus.REVIEWED
                title = "Request Approved at Level"
                message = (
                    f"Your {_label(request)} request passed level {step.level} "
                    f"and is awaiting level {request.next_approval_level} approval"
                )
            elif request.type in self.post_approval_processing:
                request.next_approval_level = None
                request.status = RequestStatus.APPROVED
                title = "Request Approved"
                message = f"Your {_label(request)} request has been approved and is awaiting processing"
            else:
                request.next_approval_level = None
                request.status = RequestStatus.COMPLETED
                request.completed_at = now
                await self.executor.execute(request)
                title = "Request Completed"
                message = f"Your {_label(request)} request has been approved and applied"

            await self.notifications.notify_request_update(
                request, title, message, exclude_user_id=actor.user_id
            )

        self._audit(actor, "APPROVE_REQUEST", request, context)
        return request

    async def reject_step(
        self,
        request_id: str,
        actor: Actor,
        reason: Optional[str],
        level: Optional[int] = None,
        context: Optional[Dict[str, Optional[str]]] = None
    ) -> Request:
        """Reject at the current level; the rest of the chain is skipped"""
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to reject a request")

        async with self._unit_of_work(request_id, "reject"):
            request = await self._load_actionable(request_id, level)
            authorize(actor, REQUEST_REJECT, request)
            step = self._open_step(request)

            now = utcnow()
            step.status = ApprovalStepStatus.REJECTED
            step.approver_id = actor.user_id
            step.approved_at = now
            step.notes = reason.strip()

            for later in request.approval_steps:
                if later.level > step.level and later.status in OPEN_STEP_STATUSES:
                    later.status = ApprovalStepStatus.SKIPPED

            request.status = RequestStatus.REJECTED
            request.approver_id = actor.user_id
            request.updated_at = now

            await self.notifications.notify_request_update(
                request, "Request Rejected",
                f"Your {_label(request)} request was rejected at level {step.level}: {step.notes}",
            )

        self._audit(actor, "REJECT_REQUEST", request, context)
        return request

    # endregion

    # region ========== Request Actions ==========

    async def complete_request(
        self,
        request_id: str,
        notes: Optional[str] = None,
        actor: Optional[Actor] = None,
        context: Optional[Dict[str, Optional[str]]] = None
    ) -> Request:
        """Run the post-approval effect of an APPROVED request"""
        async with self._unit_of_work(request_id, "complete"):
            request = await self._load(request_id)
            if request.status != RequestStatus.APPROVED:
                raise InvalidTransitionError(
                    f"Only approved requests can be completed; request is {request.status.value}"
                )
            if actor is not None:
                authorize(actor, REQUEST_COMPLETE, request)

            await self.executor.execute(request)

            now = utcnow()
            request.status = RequestStatus.COMPLETED
            request.completed_at = now
            request.updated_at = now
            if notes:
                request.notes = notes
            if actor is not None:
                request.assignee_id = actor.user_id

            await self.notifications.notify_request_update(
                request, "Request Completed",
                f"Your {_label(request)} request has been processed",
            )

        self._audit(actor, "COMPLETE_REQUEST", request, context)
        return request

    async def cancel_request(
        self,
        request_id: str,
        actor: Actor,
        reason: Optional[str] = None,
        context: Optional[Dict[str, Optional[str]]] = None
    ) -> Request:
        """Withdraw a request that is still moving through its chain"""
        async with self._unit_of_work(request_id, "cancel"):
            request = await self._load(request_id)
            if request.status not in ACTIONABLE_STATUSES:
                raise InvalidTransitionError(
                    f"Cannot cancel a {request.status.value} request"
                )
            authorize(actor, REQUEST_CANCEL, request)

            for step in request.approval_steps:
                if step.status in OPEN_STEP_STATUSES:
                    step.status = ApprovalStepStatus.SKIPPED

            request.status = RequestStatus.CANCELLED
            request.notes = reason.strip() if reason and reason.strip() else DEFAULT_CANCEL_REASON
            request.updated_at = utcnow()

            await self.notifications.notify_request_update(
                request, "Request Cancelled",
                f"Your {_label(request)} request was cancelled: {request.notes}",
            )

        self._audit(actor, "CANCEL_REQUEST", request, context)
        return request

    # endregion
