from sqlalchemy import Column, Integer, Numeric, ForeignKey, String, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import SavingsStatus

class PersonalSavings(BaseModel):
    """Voluntary savings plan opened by a member on top of regular savings"""
    __tablename__ = "personal_savings"

    biodata_id = Column(Integer, ForeignKey("biodata.id"), nullable=False)
    plan_name = Column(String(200), nullable=False)
    target_amount = Column(Numeric(15, 2))
    balance = Column(Numeric(15, 2), nullable=False, default=0)
    status = Column(SQLEnum(SavingsStatus), default=SavingsStatus.PENDING, nullable=False)
