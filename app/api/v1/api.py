from fastapi import APIRouter
from app.api.v1.endpoints.auth import login
from app.api.v1.endpoints.approval import approvals
from app.api.v1.endpoints.request import requests
from app.schemas.common.envelope import ErrorResponse

# Documented error envelope for every workflow route
ERROR_RESPONSES = {
    status_code: {"model": ErrorResponse}
    for status_code in (400, 401, 403, 404, 409, 422)
}

api_router = APIRouter()

# Authentication routes
api_router.include_router(login.router, prefix="/auth", tags=["Authentication"])

# Request workflow routes
api_router.include_router(requests.router, prefix="/requests", tags=["Requests"], responses=ERROR_RESPONSES)
api_router.include_router(approvals.router, prefix="/approvals", tags=["Approvals"], responses=ERROR_RESPONSES)
