import logging
from typing import Dict, Any, Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.alerts.notification import Notification
from app.models.request.request import Request
from app.models.shared.enums import NotificationType, ACTIONABLE_STATUSES
from app.services.auth.user_service import UserService

logger = logging.getLogger(__name__)

class NotificationService:
    """
    Persists in-app notifications.
    Rows are added to the caller's session and committed with the caller's
    transaction, so a rolled back transition leaves no notifications behind.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_service = UserService(db)

    def notify(
        self,
        user_id: int,
        notification_type: NotificationType,
        title: str,
        message: str,
        request_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            request_id=request_id,
            data=data or {},
        )
        self.db.add(notification)
        return notification

    def notify_many(self, user_ids: Iterable[int], notification_type: NotificationType,
                    title: str, message: str, request_id: Optional[str] = None,
                    data: Optional[Dict[str, Any]] = None) -> int:
        count = 0
        for user_id in set(user_ids):
            self.notify(user_id, notification_type, title, message, request_id, data)
            count += 1
        return count

    # region ========== Request Workflow ==========

    async def notify_request_update(self, request: Request, title: str, message: str,
                                    exclude_user_id: Optional[int] = None,
                                    notify_approvers: bool = True):
        """Tell the initiator what happened and the next approvers that it's their turn"""
        data = {
            "request_type": request.type.value,
            "status": request.status.value,
            "next_approval_level": request.next_approval_level,
        }
        self.notify(request.initiator_id, NotificationType.REQUEST_UPDATE,
                    title, message, request.id, data)

        if not notify_approvers or request.status not in ACTIONABLE_STATUSES:
            return

        step = request.current_step()
        if step is None:
            return

        approver_ids = await self.user_service.get_user_ids_by_role(step.approver_role)
        approver_ids = [uid for uid in approver_ids if uid != exclude_user_id]
        sent = self.notify_many(
            approver_ids,
            NotificationType.APPROVAL_REQUIRED,
            "New Request Requires Review",
            f"A {request.type.value.replace('_', ' ').lower()} request is awaiting "
            f"level {step.level} ({step.approver_role}) approval",
            request.id,
            data,
        )
        logger.info(f"Notified {sent} {step.approver_role} approver(s) for request {request.id}")

    # endregion
