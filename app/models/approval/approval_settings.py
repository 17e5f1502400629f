from sqlalchemy import Column, Integer, Boolean, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import RequestType

class ApprovalSettings(BaseModel):
    """Per request type switch; a disabled type needs no approval at all"""
    __tablename__ = 'approval_settings'

    request_type = Column(SQLEnum(RequestType), nullable=False, unique=True)
    is_enabled = Column(Boolean, default=True, nullable=False)
    updated_by = Column(Integer, nullable=True)
