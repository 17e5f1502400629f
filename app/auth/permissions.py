# app/auth/permissions.py
"""
Centralised capability checks.

`can(actor, action, resource)` is the single predicate consulted by the
transition engine, the endpoints and the API client, so UI gating and
server-side enforcement cannot drift apart.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional
import logging

from app.core.exceptions import AuthorizationError

logger = logging.getLogger(__name__)

SUPER_ADMIN = "SUPER_ADMIN"

# Request permissions
VIEW_REQUESTS = "VIEW_REQUESTS"
REVIEW_REQUESTS = "REVIEW_REQUESTS"
VERIFY_REQUESTS = "VERIFY_REQUESTS"
APPROVE_REQUESTS = "APPROVE_REQUESTS"
PROCESS_REQUESTS = "PROCESS_REQUESTS"
MANAGE_REQUESTS = "MANAGE_REQUESTS"

# Actions
REQUEST_CREATE = "request:create"
REQUEST_VIEW = "request:view"
REQUEST_LIST = "request:list"
REQUEST_REVIEW = "request:review"
REQUEST_APPROVE = "request:approve"
REQUEST_REJECT = "request:reject"
REQUEST_COMPLETE = "request:complete"
REQUEST_CANCEL = "request:cancel"
REQUEST_DELETE = "request:delete"
SETTINGS_MANAGE = "approval_settings:manage"

STEP_ACTIONS = (REQUEST_REVIEW, REQUEST_APPROVE, REQUEST_REJECT)


@dataclass(frozen=True)
class Actor:
    """The resolved capabilities of a caller"""

    user_id: int
    role: Optional[str] = None
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    approval_level: int = 0
    can_approve: bool = False
    module_access: FrozenSet[str] = field(default_factory=frozenset)
    role_expires_at: Optional[datetime] = None
    is_active: bool = True

    @classmethod
    def from_user(cls, user) -> "Actor":
        """Build from a User whose role_assignment (and its role) is loaded"""
        assignment = user.role_assignment
        if assignment is None or not assignment.is_active or assignment.role is None:
            return cls(user_id=user.id, is_active=bool(user.is_active))

        role = assignment.role
        return cls(
            user_id=user.id,
            role=role.name,
            permissions=frozenset(role.permissions or []),
            approval_level=role.approval_level or 0,
            can_approve=bool(role.can_approve),
            module_access=frozenset(role.module_access or []),
            role_expires_at=assignment.expires_at,
            is_active=bool(user.is_active),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Actor":
        """Build from the /auth/me payload (client side gating)"""
        expires = data.get("role_expires_at")
        if isinstance(expires, str):
            expires = datetime.fromisoformat(expires.replace("Z", "+00:00"))
        return cls(
            user_id=data["user_id"],
            role=data.get("role"),
            permissions=frozenset(data.get("permissions") or []),
            approval_level=data.get("approval_level") or 0,
            can_approve=bool(data.get("can_approve")),
            module_access=frozenset(data.get("module_access") or []),
            role_expires_at=expires,
            is_active=data.get("is_active", True),
        )

    @property
    def is_super_admin(self) -> bool:
        return self.role == SUPER_ADMIN

    def role_expired(self, now: Optional[datetime] = None) -> bool:
        if self.role_expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires = self.role_expires_at
        # SQLite hands back naive datetimes; they are stored as UTC
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires <= now

    def has_permission(self, permission: str) -> bool:
        if self.role_expired():
            return False
        return self.is_super_admin or permission in self.permissions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "role": self.role,
            "permissions": sorted(self.permissions),
            "approval_level": self.approval_level,
            "can_approve": self.can_approve,
            "module_access": sorted(self.module_access),
            "role_expires_at": self.role_expires_at,
            "is_active": self.is_active,
        }


def step_permission(level: int) -> str:
    """Permission needed to sign off a step at the given level"""
    if level <= 1:
        return REVIEW_REQUESTS
    if level == 2:
        return VERIFY_REQUESTS
    return APPROVE_REQUESTS


def _enum_value(value) -> Any:
    return getattr(value, "value", value)


def _check_step(actor: Actor, action: str, request) -> Optional[str]:
    step = request.current_step() if request is not None else None
    if step is None:
        return "Request has no approval step awaiting action"

    if actor.role_expired():
        return "Your role assignment has expired"

    if actor.approval_level < step.level:
        return (
            f"Insufficient approval level. Required: {step.level}, "
            f"Your level: {actor.approval_level}"
        )

    if not actor.is_super_admin and actor.role != step.approver_role:
        return f"This step must be handled by role {step.approver_role}"

    module = _enum_value(request.module)
    if not actor.is_super_admin and module not in actor.module_access:
        return f"Your role has no access to the {module} module"

    if action == REQUEST_APPROVE:
        required = step_permission(step.level)
    else:
        required = REVIEW_REQUESTS

    if not actor.has_permission(required):
        return f"Missing required permission: {required}"

    if required == APPROVE_REQUESTS and not (actor.can_approve or actor.is_super_admin):
        return "Your role doesn't have approval authority"

    return None


def check(actor: Actor, action: str, resource: Any = None) -> Optional[str]:
    """
    Return None when `actor` may perform `action` on `resource`, otherwise
    the reason it may not.
    """
    if not actor.is_active:
        return "Your account is inactive"

    if action in STEP_ACTIONS:
        return _check_step(actor, action, resource)

    if action == REQUEST_CREATE:
        return None

    if action == REQUEST_VIEW:
        if resource is not None and resource.initiator_id == actor.user_id:
            return None
        if actor.has_permission(VIEW_REQUESTS):
            return None
        return "You can only view your own requests"

    if action == REQUEST_LIST:
        if actor.has_permission(VIEW_REQUESTS):
            return None
        return f"Missing required permission: {VIEW_REQUESTS}"

    if action == REQUEST_COMPLETE:
        if not actor.has_permission(PROCESS_REQUESTS):
            return f"Missing required permission: {PROCESS_REQUESTS}"
        if resource is not None and not actor.is_super_admin:
            module = _enum_value(resource.module)
            if module not in actor.module_access:
                return f"Your role has no access to the {module} module"
        return None

    if action == REQUEST_CANCEL:
        if resource is not None and resource.initiator_id == actor.user_id:
            return None
        if actor.has_permission(MANAGE_REQUESTS):
            return None
        return "Only the initiator or an administrator can cancel this request"

    if action in (REQUEST_DELETE, SETTINGS_MANAGE):
        if actor.is_super_admin and not actor.role_expired():
            return None
        return "Only a super administrator can perform this action"

    logger.warning(f"Unknown action checked: {action}")
    return f"Unknown action: {action}"


def can(actor: Actor, action: str, resource: Any = None) -> bool:
    """Check if actor can perform action on resource"""
    reason = check(actor, action, resource)
    if reason is not None:
        logger.debug(f"Permission denied: {action} for user {actor.user_id} ({reason})")
        return False
    return True


def authorize(actor: Actor, action: str, resource: Any = None):
    """Require permission or raise AuthorizationError"""
    reason = check(actor, action, resource)
    if reason is not None:
        logger.warning(f"Permission check failed: user {actor.user_id} {action}: {reason}")
        raise AuthorizationError(reason)
