from pydantic import BaseModel, Field
from typing import Optional, Any, Dict, List
from datetime import datetime
from app.models.shared.enums import (
    RequestType, RequestModule, RequestStatus, RequestPriority, ApprovalStepStatus
)

class RequestBase(BaseModel):
    type: RequestType
    module: RequestModule
    content: Dict[str, Any]
    notes: Optional[str] = None
    priority: RequestPriority = RequestPriority.MEDIUM

class RequestCreate(RequestBase):
    biodata_id: Optional[int] = None
    loan_id: Optional[int] = None
    savings_id: Optional[int] = None
    personal_savings_id: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None

    def linkage(self) -> Dict[str, Optional[int]]:
        return {
            "biodata_id": self.biodata_id,
            "loan_id": self.loan_id,
            "savings_id": self.savings_id,
            "personal_savings_id": self.personal_savings_id,
        }

class RequestStatusUpdate(BaseModel):
    status: RequestStatus
    notes: Optional[str] = None
    # Level the caller believes is current; a mismatch is reported as stale
    level: Optional[int] = Field(None, ge=1)

class ApprovalStepResponse(BaseModel):
    id: int
    level: int
    status: ApprovalStepStatus
    approver_role: str
    approver_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class RequestResponse(RequestBase):
    id: str
    status: RequestStatus
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="extra_metadata")
    initiator_id: int
    approver_id: Optional[int] = None
    assignee_id: Optional[int] = None
    next_approval_level: Optional[int] = None
    biodata_id: Optional[int] = None
    loan_id: Optional[int] = None
    savings_id: Optional[int] = None
    personal_savings_id: Optional[int] = None
    approval_steps: List[ApprovalStepResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    version: int

    class Config:
        from_attributes = True

class RequestStatistics(BaseModel):
    total: int
    pending: int
    in_review: int
    reviewed: int
    approved: int
    rejected: int
    completed: int
    cancelled: int
    by_type: Dict[str, int] = {}
