from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: int
    role: Optional[str] = None

class ActorResponse(BaseModel):
    """What the caller may do; consumed by clients to gate their UI"""
    user_id: int
    role: Optional[str] = None
    permissions: List[str] = []
    approval_level: int = 0
    can_approve: bool = False
    module_access: List[str] = []
    role_expires_at: Optional[datetime] = None
    is_active: bool = True
