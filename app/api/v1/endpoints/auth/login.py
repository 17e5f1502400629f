import logging
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_actor
from app.auth.permissions import Actor
from app.core.database import get_async_session
from app.core.request_context import get_request_context
from app.schemas.auth.login import ActorResponse, LoginRequest, LoginResponse
from app.schemas.common.envelope import ApiResponse
from app.services.auth.auth_service import AuthService

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    credentials: LoginRequest,
    request: Request,
    session: AsyncSession = Depends(get_async_session)
):
    """Exchange username and password for a bearer token"""
    auth_service = AuthService(session)
    result = await auth_service.login(
        credentials.username,
        credentials.password,
        get_request_context(request)
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ApiResponse(message="Login successful", data=result)

@router.get("/me", response_model=ApiResponse[ActorResponse])
async def read_current_actor(actor: Actor = Depends(get_current_actor)):
    """Role, level and permissions of the caller"""
    return ApiResponse(message="Profile retrieved successfully", data=ActorResponse(**actor.to_dict()))
