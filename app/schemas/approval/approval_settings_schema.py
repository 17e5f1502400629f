from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from app.models.shared.enums import RequestType

class ApprovalSettingsBase(BaseModel):
    request_type: RequestType
    is_enabled: bool

class ApprovalSettingsUpdate(ApprovalSettingsBase):
    pass

class ApprovalSettingsResponse(ApprovalSettingsBase):
    approval_levels: int
    approver_roles: List[str] = []
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None
