from sqlalchemy import Column, Integer, String, Text, ForeignKey, Boolean, JSON, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import NotificationType

class Notification(BaseModel):
    __tablename__ = 'notifications'

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(NotificationType), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    request_id = Column(String(36), ForeignKey("requests.id", ondelete="SET NULL"), nullable=True)
    data = Column(JSON, default=dict)
    is_read = Column(Boolean, default=False, nullable=False)
