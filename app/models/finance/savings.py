from sqlalchemy import Column, Integer, Numeric, ForeignKey
from app.db.base import BaseModel

class Savings(BaseModel):
    """Regular (payroll-deducted) savings balance of a member"""
    __tablename__ = "savings"

    biodata_id = Column(Integer, ForeignKey("biodata.id"), nullable=False)
    balance = Column(Numeric(15, 2), nullable=False, default=0)
    monthly_target = Column(Numeric(15, 2), nullable=False, default=0)
