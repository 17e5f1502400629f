from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_async_session
from app.auth.jwt_handler import decode_access_token
from app.auth.permissions import Actor, authorize
from app.models.auth.user import User
from app.services.auth.user_service import UserService
import logging

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

def _unauthorized(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_async_session)
) -> User:
    """Get current authenticated user"""
    if credentials is None:
        raise _unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized()

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized()

    user_service = UserService(session)
    user = await user_service.get_user(user_id)

    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")

    request.state.current_user = user
    return user

async def get_current_actor(
    request: Request,
    current_user: User = Depends(get_current_user)
) -> Actor:
    """Capabilities of the authenticated user"""
    actor = Actor.from_user(current_user)
    request.state.actor = actor
    return actor

def require_action(action: str):
    """
    Dependency to require a resource-independent action for an endpoint

    Examples:
        require_action(REQUEST_LIST)
    """
    async def action_dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        authorize(actor, action)
        return actor

    return action_dependency
