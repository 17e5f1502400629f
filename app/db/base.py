from datetime import datetime, timezone
from sqlalchemy import Column, Integer, DateTime
from app.models.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """created_at / updated_at stamped on the application side (microsecond precision for ordering)"""

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class BaseModel(TimestampMixin, Base):
    """Base model with an integer surrogate key"""
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True)

    def __repr__(self):
        return f"<{type(self).__name__} id={self.id}>"
