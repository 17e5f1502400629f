from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from app.db.base import BaseModel

class BankAccount(BaseModel):
    """Bank account a member's disbursements and withdrawals are paid into"""
    __tablename__ = "bank_accounts"

    biodata_id = Column(Integer, ForeignKey("biodata.id"), unique=True, index=True, nullable=False)
    bank_name = Column(String(100), nullable=False)
    account_number = Column(String(20), nullable=False)
    account_name = Column(String(200), nullable=False)
    bvn = Column(String(11))
    is_verified = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime(timezone=True))
