from sqlalchemy import Column, String, Text, Boolean, Integer, JSON
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Role(BaseModel):
    __tablename__ = "roles"

    name = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    permissions = Column(JSON, nullable=False, default=list)     # ["REVIEW_REQUESTS", ...]
    approval_level = Column(Integer, nullable=False, default=0)
    can_approve = Column(Boolean, default=False, nullable=False)
    module_access = Column(JSON, nullable=False, default=list)   # ["LOAN", "SAVINGS", ...]
    is_system_role = Column(Boolean, default=False)

    # Relationships
    user_roles = relationship("UserRole", back_populates="role", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Role {self.name} level={self.approval_level}>"
