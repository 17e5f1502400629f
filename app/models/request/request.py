import uuid
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Enum as SQLEnum, JSON, DateTime
from sqlalchemy.orm import relationship
from app.db.base import TimestampMixin
from app.models.base import Base
from app.models.shared.enums import RequestType, RequestModule, RequestStatus, RequestPriority


class Request(TimestampMixin, Base):
    """An action awaiting one or more sign-offs before it takes effect"""
    __tablename__ = "requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = Column(SQLEnum(RequestType), nullable=False, index=True)
    module = Column(SQLEnum(RequestModule), nullable=False)
    status = Column(SQLEnum(RequestStatus), nullable=False, default=RequestStatus.PENDING, index=True)
    priority = Column(SQLEnum(RequestPriority), nullable=False, default=RequestPriority.MEDIUM)
    content = Column(JSON, nullable=False)
    # "metadata" is reserved on declarative classes
    extra_metadata = Column("metadata", JSON, nullable=False, default=dict)
    notes = Column(Text)

    initiator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    # NULL once the final level has approved (or when no approval was required)
    next_approval_level = Column(Integer, nullable=True)

    biodata_id = Column(Integer, ForeignKey("biodata.id"), nullable=True, index=True)
    loan_id = Column(Integer, ForeignKey("loans.id"), nullable=True)
    savings_id = Column(Integer, ForeignKey("savings.id"), nullable=True)
    personal_savings_id = Column(Integer, ForeignKey("personal_savings.id"), nullable=True)

    completed_at = Column(DateTime(timezone=True))

    # Optimistic concurrency guard: every UPDATE checks and bumps this
    version = Column(Integer, nullable=False, default=1)

    # Relationships
    approval_steps = relationship(
        "RequestApproval",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestApproval.level",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def current_step(self):
        """The step whose level equals next_approval_level, if any"""
        if self.next_approval_level is None:
            return None
        for step in self.approval_steps:
            if step.level == self.next_approval_level:
                return step
        return None

    def __repr__(self):
        return f"<Request {self.id} {self.type.value} {self.status.value}>"
