from app.models.auth.role import Role
from app.models.auth.user import User
from app.models.auth.user_role import UserRole
from app.models.member.biodata import Biodata
from app.models.member.bank_account import BankAccount
from app.models.finance.loan import Loan
from app.models.finance.savings import Savings
from app.models.finance.personal_savings import PersonalSavings
from app.models.request.request import Request
from app.models.request.request_approval import RequestApproval
from app.models.approval.approval_settings import ApprovalSettings
from app.models.alerts.notification import Notification


__all__ = [
    "Role",
    "User",
    "UserRole",
    "Biodata",
    "BankAccount",
    "Loan",
    "Savings",
    "PersonalSavings",
    "Request",
    "RequestApproval",
    "ApprovalSettings",
    "Notification",
]
