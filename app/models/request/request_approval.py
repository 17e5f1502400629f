from sqlalchemy import Column, Integer, String, Text, ForeignKey, Enum as SQLEnum, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.models.shared.enums import ApprovalStepStatus

class RequestApproval(BaseModel):
    """One required sign-off within a request's approval chain"""
    __tablename__ = "request_approvals"

    request_id = Column(String(36), ForeignKey("requests.id", ondelete="CASCADE"), nullable=False, index=True)
    level = Column(Integer, nullable=False)
    status = Column(SQLEnum(ApprovalStepStatus), nullable=False, default=ApprovalStepStatus.PENDING)
    approver_role = Column(String(100), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True))
    notes = Column(Text)

    # Relationships
    request = relationship("Request", back_populates="approval_steps")

    __table_args__ = (
        UniqueConstraint("request_id", "level", name="uq_request_approval_level"),
    )

    def __repr__(self):
        return f"<RequestApproval request={self.request_id} level={self.level} {self.status.value}>"
