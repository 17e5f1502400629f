"""
Role seed data (async, idempotent)
Existing roles are brought back in line with these definitions on every run.
"""
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.permissions import (
    VIEW_REQUESTS, REVIEW_REQUESTS, VERIFY_REQUESTS, APPROVE_REQUESTS,
    PROCESS_REQUESTS, MANAGE_REQUESTS,
)
from app.core.security import get_password_hash
from app.models.auth.role import Role
from app.models.auth.user import User
from app.models.auth.user_role import UserRole
from app.models.shared.enums import RequestModule

ALL_MODULES = [m.value for m in RequestModule]

roles_data = [
    # =================== ADMINISTRATIVE ===================
    {
        "name": "SUPER_ADMIN",
        "description": "Full system access; may act on any approval level",
        "permissions": [
            VIEW_REQUESTS, REVIEW_REQUESTS, VERIFY_REQUESTS, APPROVE_REQUESTS,
            PROCESS_REQUESTS, MANAGE_REQUESTS,
        ],
        "approval_level": 3,
        "can_approve": True,
        "module_access": ALL_MODULES,
        "is_system_role": True,
    },
    {
        "name": "CHAIRMAN",
        "description": "Final approval authority",
        "permissions": [VIEW_REQUESTS, REVIEW_REQUESTS, VERIFY_REQUESTS, APPROVE_REQUESTS],
        "approval_level": 3,
        "can_approve": True,
        "module_access": ALL_MODULES,
        "is_system_role": True,
    },
    {
        "name": "TREASURER",
        "description": "Financial verification and disbursement",
        "permissions": [VIEW_REQUESTS, REVIEW_REQUESTS, VERIFY_REQUESTS, PROCESS_REQUESTS],
        "approval_level": 2,
        "can_approve": False,
        "module_access": ALL_MODULES,
        "is_system_role": True,
    },
    {
        "name": "ADMIN",
        "description": "First-level review of member requests",
        "permissions": [VIEW_REQUESTS, REVIEW_REQUESTS, MANAGE_REQUESTS],
        "approval_level": 1,
        "can_approve": False,
        "module_access": ALL_MODULES,
        "is_system_role": True,
    },
    # =================== MEMBERS ===================
    {
        "name": "MEMBER",
        "description": "Cooperative member; files and follows own requests",
        "permissions": [],
        "approval_level": 0,
        "can_approve": False,
        "module_access": [],
        "is_system_role": True,
    },
]

# =================== SEEDING ===================
async def seed_roles(session: AsyncSession) -> List[str]:
    """Create or refresh the default roles; returns names of roles created"""
    created_roles = []
    for role_data in roles_data:
        result = await session.execute(select(Role).where(Role.name == role_data["name"]))
        role = result.scalar_one_or_none()
        if role is None:
            role = Role(name=role_data["name"])
            session.add(role)
            created_roles.append(role_data["name"])

        role.description = role_data["description"]
        role.permissions = list(role_data["permissions"])
        role.approval_level = role_data["approval_level"]
        role.can_approve = role_data["can_approve"]
        role.module_access = list(role_data["module_access"])
        role.is_system_role = role_data["is_system_role"]

    await session.commit()
    return created_roles


async def create_user_with_role(
    session: AsyncSession,
    username: str,
    password: str,
    role_name: str,
    email: Optional[str] = None,
    is_member: bool = False,
    expires_at=None,
) -> User:
    """Create a user holding `role_name`; the role must already be seeded"""
    result = await session.execute(select(Role).where(Role.name == role_name))
    role = result.scalar_one()

    user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash(password),
        is_active=True,
        is_member=is_member,
    )
    user.role_assignment = UserRole(role_id=role.id, is_active=True, expires_at=expires_at)
    session.add(user)
    await session.commit()
    return user


async def seed_super_admin(session: AsyncSession, password: str) -> Optional[User]:
    """Create the initial super admin unless one exists"""
    result = await session.execute(
        select(UserRole.id)
        .join(Role, Role.id == UserRole.role_id)
        .where(Role.name == "SUPER_ADMIN")
    )
    if result.first() is not None:
        return None
    return await create_user_with_role(
        session, "superadmin", password, "SUPER_ADMIN", email="admin@system.local"
    )
