"""
Per-type request payloads.

The engine treats `Request.content` as opaque; these models only guard the
boundary so that a request can't be filed with a payload its completion
effect would choke on.
"""
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator, model_validator

from app.core.exceptions import ValidationError
from app.models.shared.enums import RequestType

# Biodata columns a BIODATA_UPDATE request may change
BIODATA_UPDATABLE_FIELDS = frozenset({
    "first_name",
    "last_name",
    "department",
    "email_address",
    "phone_number",
    "residential_address",
    "next_of_kin",
})

# Bank account columns set by ACCOUNT_CREATION and ACCOUNT_UPDATE requests
BANK_ACCOUNT_FIELDS = ("bank_name", "account_number", "account_name", "bvn")


class _Content(BaseModel):
    model_config = ConfigDict(extra="allow")


class LoanApplicationContent(_Content):
    amount: Decimal = Field(..., gt=0)
    tenure_months: int = Field(..., ge=1, le=120)
    purpose: Optional[str] = None


class LoanDisbursementContent(_Content):
    amount: Optional[Decimal] = Field(None, gt=0)


class WithdrawalContent(_Content):
    amount: Decimal = Field(..., gt=0)
    reason: Optional[str] = None


class PersonalSavingsCreationContent(_Content):
    plan_name: str = Field(..., min_length=1, max_length=200)
    target_amount: Optional[Decimal] = Field(None, gt=0)


class BiodataUpdateContent(_Content):
    updates: Dict[str, Any]

    @field_validator("updates")
    @classmethod
    def validate_updates(cls, v):
        if not v:
            raise ValueError("updates must not be empty")
        unknown = set(v) - BIODATA_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"fields cannot be updated: {', '.join(sorted(unknown))}")
        return v


class AccountCreationContent(_Content):
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(..., min_length=6, max_length=20)
    account_name: str = Field(..., min_length=1, max_length=200)
    bvn: Optional[str] = Field(None, min_length=11, max_length=11)


class AccountUpdateContent(_Content):
    bank_name: Optional[str] = Field(None, min_length=1, max_length=100)
    account_number: Optional[str] = Field(None, min_length=6, max_length=20)
    account_name: Optional[str] = Field(None, min_length=1, max_length=200)
    bvn: Optional[str] = Field(None, min_length=11, max_length=11)

    @model_validator(mode="after")
    def validate_has_changes(self):
        if not any(getattr(self, field) is not None for field in BANK_ACCOUNT_FIELDS):
            raise ValueError(f"at least one of {', '.join(BANK_ACCOUNT_FIELDS)} is required")
        return self


class AccountClosureContent(_Content):
    reason: str = Field(..., min_length=1)


class FreeContent(_Content):
    pass


CONTENT_SCHEMAS: Dict[RequestType, Type[BaseModel]] = {
    RequestType.LOAN_APPLICATION: LoanApplicationContent,
    RequestType.LOAN_DISBURSEMENT: LoanDisbursementContent,
    RequestType.SAVINGS_WITHDRAWAL: WithdrawalContent,
    RequestType.PERSONAL_SAVINGS_WITHDRAWAL: WithdrawalContent,
    RequestType.PERSONAL_SAVINGS_CREATION: PersonalSavingsCreationContent,
    RequestType.BIODATA_UPDATE: BiodataUpdateContent,
    RequestType.ACCOUNT_CREATION: AccountCreationContent,
    RequestType.ACCOUNT_UPDATE: AccountUpdateContent,
    RequestType.ACCOUNT_CLOSURE: AccountClosureContent,
    RequestType.ACCOUNT_VERIFICATION: FreeContent,
    RequestType.BULK_UPLOAD: FreeContent,
    RequestType.SYSTEM_ADJUSTMENT: FreeContent,
}

# Linkage ids that must accompany each type
REQUIRED_LINKAGE: Dict[RequestType, Tuple[str, ...]] = {
    RequestType.LOAN_APPLICATION: ("biodata_id", "loan_id"),
    RequestType.LOAN_DISBURSEMENT: ("loan_id",),
    RequestType.SAVINGS_WITHDRAWAL: ("biodata_id", "savings_id"),
    RequestType.PERSONAL_SAVINGS_WITHDRAWAL: ("personal_savings_id",),
    RequestType.PERSONAL_SAVINGS_CREATION: ("biodata_id",),
    RequestType.BIODATA_UPDATE: ("biodata_id",),
    RequestType.ACCOUNT_CREATION: ("biodata_id",),
    RequestType.ACCOUNT_UPDATE: ("biodata_id",),
    RequestType.ACCOUNT_CLOSURE: ("biodata_id",),
    RequestType.ACCOUNT_VERIFICATION: ("biodata_id",),
}


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"]) or "content"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def validate_content(request_type: RequestType, content: Dict[str, Any]) -> None:
    """Raise ValidationError if content doesn't fit the type's payload"""
    if not isinstance(content, dict):
        raise ValidationError("content must be an object")
    schema = CONTENT_SCHEMAS.get(request_type, FreeContent)
    try:
        schema.model_validate(content)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid content for {request_type.value}: {_format_errors(e)}")


def validate_linkage(request_type: RequestType, linkage: Dict[str, Optional[Any]]) -> None:
    missing = [key for key in REQUIRED_LINKAGE.get(request_type, ()) if linkage.get(key) is None]
    if missing:
        raise ValidationError(f"{request_type.value} requires {', '.join(missing)}")
