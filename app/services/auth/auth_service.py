import logging
from typing import Optional, Dict
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.logging import log_user_action
from app.core.security import verify_password, create_access_token
from app.db.base import utcnow
from app.models.auth.user import User
from app.schemas.auth.login import LoginResponse
from app.services.auth.user_service import UserService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_service = UserService(session)

    async def authenticate_user(self, username: str, password: str) -> Optional[User]:
        """Authenticate user with username and password"""
        user = await self.user_service.get_user_by_username(username)
        if user is None or not user.is_active:
            logger.warning(f"Failed login for {username}: user not found or inactive")
            return None

        if not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login for {username}: invalid password")
            return None

        return user

    async def login(
        self,
        username: str,
        password: str,
        context: Optional[Dict[str, Optional[str]]] = None,
    ) -> Optional[LoginResponse]:
        user = await self.authenticate_user(username, password)
        if user is None:
            return None

        user.last_login = utcnow()
        await self.session.commit()

        expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        token = create_access_token(user.id, expires_delta=expires)
        assignment = user.role_assignment

        log_user_action(user.id, "LOGIN", "user", user.id, context)
        return LoginResponse(
            access_token=token,
            expires_in=int(expires.total_seconds()),
            user_id=user.id,
            role=assignment.role.name if assignment and assignment.role else None,
        )
