from typing import Generic, List, Literal, Optional, TypeVar
from pydantic import BaseModel

from app.schemas.common.pagination import PageMeta

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    status: Literal["success"] = "success"
    message: str = ""
    data: Optional[T] = None


class PaginatedResponse(BaseModel, Generic[T]):
    status: Literal["success"] = "success"
    message: str = ""
    data: List[T]
    meta: PageMeta


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    code: str
    message: str
