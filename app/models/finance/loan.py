from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, String, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import LoanStatus

class Loan(BaseModel):
    __tablename__ = "loans"

    biodata_id = Column(Integer, ForeignKey("biodata.id"), nullable=False)
    principal_amount = Column(Numeric(15, 2), nullable=False)
    tenure_months = Column(Integer, nullable=False)
    purpose = Column(String(500))
    status = Column(SQLEnum(LoanStatus), default=LoanStatus.PENDING, nullable=False)
    disbursed_at = Column(DateTime(timezone=True))
