"""
Completion executor
Applies the domain effect of a request once its approval chain has finished.
Runs inside the caller's transaction; it never commits.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import LinkageError, ValidationError
from app.db.base import utcnow
from app.models.finance.loan import Loan
from app.models.finance.personal_savings import PersonalSavings
from app.models.finance.savings import Savings
from app.models.member.bank_account import BankAccount
from app.models.member.biodata import Biodata
from app.models.request.request import Request
from app.models.shared.enums import LoanStatus, RequestType, SavingsStatus
from app.schemas.request.content_schema import BANK_ACCOUNT_FIELDS, BIODATA_UPDATABLE_FIELDS

logger = logging.getLogger(__name__)

class CompletionExecutor:
    """Executes completed requests against the member's records"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._handlers = {
            RequestType.LOAN_APPLICATION: self._disburse_loan,
            RequestType.LOAN_DISBURSEMENT: self._disburse_loan,
            RequestType.SAVINGS_WITHDRAWAL: self._withdraw_savings,
            RequestType.PERSONAL_SAVINGS_WITHDRAWAL: self._withdraw_personal_savings,
            RequestType.PERSONAL_SAVINGS_CREATION: self._create_personal_savings,
            RequestType.BIODATA_UPDATE: self._apply_biodata_update,
            RequestType.ACCOUNT_CREATION: self._create_bank_account,
            RequestType.ACCOUNT_UPDATE: self._update_bank_account,
            RequestType.ACCOUNT_VERIFICATION: self._verify_account,
            RequestType.ACCOUNT_CLOSURE: self._close_account,
        }

    async def execute(self, request: Request) -> bool:
        """Apply the effect for `request`; returns False when its type has none"""
        handler = self._handlers.get(request.type)
        if handler is None:
            logger.info(f"No completion effect for {request.type.value} request {request.id}")
            return False

        await handler(request)
        logger.info(f"Executed {request.type.value} request {request.id}")
        return True

    async def _load(self, model, entity_id: Optional[int], label: str):
        entity = await self.session.get(model, entity_id) if entity_id is not None else None
        if entity is None:
            raise LinkageError(f"{label} {entity_id} not found")
        return entity

    @staticmethod
    def _amount(request: Request) -> Decimal:
        try:
            amount = Decimal(str(request.content["amount"]))
        except (KeyError, InvalidOperation):
            raise ValidationError("Request content has no valid amount")
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero")
        return amount

    # region ============== Loans ==============

    async def _disburse_loan(self, request: Request):
        loan = await self._load(Loan, request.loan_id, "Loan")
        if loan.status == LoanStatus.DISBURSED:
            raise ValidationError(f"Loan {loan.id} has already been disbursed")
        loan.status = LoanStatus.DISBURSED
        loan.disbursed_at = utcnow()

    # endregion

    # region ============== Savings ==============

    def _debit(self, account: Any, amount: Decimal, label: str):
        balance = Decimal(str(account.balance or 0))
        if balance < amount:
            raise ValidationError(
                f"Insufficient {label} balance. Available: {balance}, Requested: {amount}"
            )
        account.balance = balance - amount

    async def _withdraw_savings(self, request: Request):
        savings = await self._load(Savings, request.savings_id, "Savings account")
        self._debit(savings, self._amount(request), "savings")

    async def _withdraw_personal_savings(self, request: Request):
        plan = await self._load(PersonalSavings, request.personal_savings_id, "Personal savings plan")
        if plan.status != SavingsStatus.ACTIVE:
            raise ValidationError(f"Personal savings plan {plan.id} is not active")
        self._debit(plan, self._amount(request), "personal savings")

    async def _create_personal_savings(self, request: Request):
        await self._load(Biodata, request.biodata_id, "Biodata")
        target = request.content.get("target_amount")
        plan = PersonalSavings(
            biodata_id=request.biodata_id,
            plan_name=request.content["plan_name"],
            target_amount=Decimal(str(target)) if target is not None else None,
            balance=Decimal("0"),
            status=SavingsStatus.ACTIVE,
        )
        self.session.add(plan)
        await self.session.flush()
        request.personal_savings_id = plan.id

    # endregion

    # region ============== Member Records ==============

    async def _apply_biodata_update(self, request: Request):
        biodata = await self._load(Biodata, request.biodata_id, "Biodata")
        for field, value in (request.content.get("updates") or {}).items():
            if field in BIODATA_UPDATABLE_FIELDS:
                setattr(biodata, field, value)

    async def _verify_account(self, request: Request):
        biodata = await self._load(Biodata, request.biodata_id, "Biodata")
        biodata.is_verified = True
        account = await self._bank_account(biodata.id)
        if account is not None and not account.is_verified:
            account.is_verified = True
            account.verified_at = utcnow()

    async def _close_account(self, request: Request):
        biodata = await self._load(Biodata, request.biodata_id, "Biodata")
        biodata.is_active = False

    # endregion

    # region ============== Bank Accounts ==============

    async def _bank_account(self, biodata_id: int) -> Optional[BankAccount]:
        result = await self.session.execute(
            select(BankAccount).where(BankAccount.biodata_id == biodata_id)
        )
        return result.scalar_one_or_none()

    async def _create_bank_account(self, request: Request):
        biodata = await self._load(Biodata, request.biodata_id, "Biodata")
        if await self._bank_account(biodata.id) is not None:
            raise ValidationError(f"Member {biodata.id} already has a bank account registered")

        account = BankAccount(
            biodata_id=biodata.id,
            bank_name=request.content["bank_name"],
            account_number=request.content["account_number"],
            account_name=request.content["account_name"],
            bvn=request.content.get("bvn"),
            is_verified=False,
        )
        self.session.add(account)
        await self.session.flush()

    async def _update_bank_account(self, request: Request):
        account = await self._bank_account(request.biodata_id)
        if account is None:
            raise LinkageError(f"Member {request.biodata_id} has no bank account to update")

        for field in BANK_ACCOUNT_FIELDS:
            value = request.content.get(field)
            if value is not None:
                setattr(account, field, value)
        # New details have to be verified again
        account.is_verified = False
        account.verified_at = None

    # endregion
