import logging
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from app.auth.permissions import Actor
from app.models.auth.user import User
from app.models.auth.role import Role
from app.models.auth.user_role import UserRole
from app.db.base import utcnow

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID with its role assignment loaded"""
        result = await self.session.execute(
            select(User)
            .options(selectinload(User.role_assignment))
            .where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(
            select(User)
            .options(selectinload(User.role_assignment))
            .where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def get_actor(self, user_id: int) -> Optional[Actor]:
        user = await self.get_user(user_id)
        if user is None:
            return None
        return Actor.from_user(user)

    async def get_user_ids_by_role(self, role_name: str) -> List[int]:
        """
        Active users currently holding `role_name`.
        Expired assignments are left out; super admins are not included
        unless the role asked for is SUPER_ADMIN itself.
        """
        result = await self.session.execute(
            select(UserRole.user_id, UserRole.expires_at)
            .join(Role, Role.id == UserRole.role_id)
            .join(User, User.id == UserRole.user_id)
            .where(
                Role.name == role_name,
                UserRole.is_active == True,
                User.is_active == True,
            )
        )
        now = utcnow()
        user_ids = []
        for user_id, expires_at in result.all():
            if expires_at is not None:
                if expires_at.tzinfo is None:
                    expires_at = expires_at.replace(tzinfo=now.tzinfo)
                if expires_at <= now:
                    continue
            user_ids.append(user_id)
        return user_ids
