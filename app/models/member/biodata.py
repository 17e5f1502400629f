from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from app.db.base import BaseModel

class Biodata(BaseModel):
    """Member registration record; the subject of most member-initiated requests"""
    __tablename__ = "biodata"

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    erp_id = Column(String(50), unique=True, index=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    department = Column(String(100))
    email_address = Column(String(255))
    phone_number = Column(String(20))
    residential_address = Column(String(500))
    next_of_kin = Column(String(200))
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
