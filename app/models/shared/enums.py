from enum import Enum

# region Request System Enums

class RequestType(str, Enum):
    LOAN_APPLICATION = "LOAN_APPLICATION"
    LOAN_DISBURSEMENT = "LOAN_DISBURSEMENT"
    ACCOUNT_CREATION = "ACCOUNT_CREATION"
    ACCOUNT_UPDATE = "ACCOUNT_UPDATE"
    ACCOUNT_CLOSURE = "ACCOUNT_CLOSURE"
    ACCOUNT_VERIFICATION = "ACCOUNT_VERIFICATION"
    SAVINGS_WITHDRAWAL = "SAVINGS_WITHDRAWAL"
    BIODATA_UPDATE = "BIODATA_UPDATE"
    PERSONAL_SAVINGS_CREATION = "PERSONAL_SAVINGS_CREATION"
    PERSONAL_SAVINGS_WITHDRAWAL = "PERSONAL_SAVINGS_WITHDRAWAL"
    BULK_UPLOAD = "BULK_UPLOAD"
    SYSTEM_ADJUSTMENT = "SYSTEM_ADJUSTMENT"

class RequestModule(str, Enum):
    ACCOUNT = "ACCOUNT"
    LOAN = "LOAN"
    SAVINGS = "SAVINGS"
    SHARES = "SHARES"
    SYSTEM = "SYSTEM"
    USER = "USER"
    ADMIN = "ADMIN"

class RequestStatus(str, Enum):
    PENDING = "PENDING"
    IN_REVIEW = "IN_REVIEW"
    REVIEWED = "REVIEWED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

class RequestPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

class ApprovalStepStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SKIPPED = "SKIPPED"

# Statuses in which the current approval step can still be acted upon
ACTIONABLE_STATUSES = (RequestStatus.PENDING, RequestStatus.IN_REVIEW, RequestStatus.REVIEWED)
TERMINAL_STATUSES = (RequestStatus.REJECTED, RequestStatus.COMPLETED, RequestStatus.CANCELLED)

# endregion

# region Member & Finance Enums

class LoanStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DISBURSED = "DISBURSED"
    CLOSED = "CLOSED"

class SavingsStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"

# endregion

# region Notification Enums

class NotificationType(str, Enum):
    REQUEST_UPDATE = "REQUEST_UPDATE"
    APPROVAL_REQUIRED = "APPROVAL_REQUIRED"

# endregion
