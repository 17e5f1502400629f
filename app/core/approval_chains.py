"""
Approval chain table
====================

Which roles must sign off on each request type, in order. Level numbers are
implicit (position + 1) so a chain can never have gaps.

An approver may act on a step only if their role's approval level is at least
the step's level, so each chain climbs the role hierarchy:
ADMIN (1) -> TREASURER (2) -> CHAIRMAN (3).
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, Tuple

from app.models.shared.enums import RequestType


@dataclass(frozen=True)
class ChainLevel:
    approver_role: str
    description: str


ApprovalChains = Mapping[RequestType, Tuple[ChainLevel, ...]]


DEFAULT_APPROVAL_CHAINS: Dict[RequestType, Tuple[ChainLevel, ...]] = {
    RequestType.LOAN_APPLICATION: (
        ChainLevel("ADMIN", "Initial loan application review"),
        ChainLevel("TREASURER", "Financial verification and review"),
        ChainLevel("CHAIRMAN", "Final loan approval"),
    ),
    RequestType.LOAN_DISBURSEMENT: (
        ChainLevel("ADMIN", "Disbursement request review"),
        ChainLevel("TREASURER", "Disbursement authorisation"),
    ),
    RequestType.SAVINGS_WITHDRAWAL: (
        ChainLevel("ADMIN", "Initial withdrawal request review"),
        ChainLevel("TREASURER", "Financial verification"),
        ChainLevel("CHAIRMAN", "Final withdrawal approval"),
    ),
    RequestType.ACCOUNT_CLOSURE: (
        ChainLevel("ADMIN", "Initial savings and share withdrawal review"),
        ChainLevel("TREASURER", "Financial verification"),
        ChainLevel("CHAIRMAN", "Final share withdrawal approval"),
    ),
    RequestType.PERSONAL_SAVINGS_WITHDRAWAL: (
        ChainLevel("ADMIN", "Initial personal savings withdrawal review"),
        ChainLevel("TREASURER", "Financial verification"),
        ChainLevel("CHAIRMAN", "Approval for personal savings withdrawal"),
    ),
    RequestType.PERSONAL_SAVINGS_CREATION: (
        ChainLevel("ADMIN", "Initial personal savings plan review"),
        ChainLevel("TREASURER", "Plan approval"),
    ),
    RequestType.BIODATA_UPDATE: (
        ChainLevel("ADMIN", "Initial biodata verification"),
        ChainLevel("CHAIRMAN", "Final biodata approval"),
    ),
    RequestType.ACCOUNT_CREATION: (
        ChainLevel("ADMIN", "Bank account details review"),
        ChainLevel("TREASURER", "Bank account approval"),
    ),
    RequestType.ACCOUNT_UPDATE: (
        ChainLevel("ADMIN", "Account update verification"),
    ),
    RequestType.ACCOUNT_VERIFICATION: (
        ChainLevel("ADMIN", "Member account verification"),
    ),
    RequestType.SYSTEM_ADJUSTMENT: (
        ChainLevel("ADMIN", "Adjustment review"),
        ChainLevel("TREASURER", "Financial verification"),
        ChainLevel("CHAIRMAN", "Adjustment approval"),
    ),
    # Bulk uploads are applied on submission
    RequestType.BULK_UPLOAD: (),
}

# Types that stay APPROVED after the last sign-off until the money actually moves
POST_APPROVAL_PROCESSING: FrozenSet[RequestType] = frozenset({
    RequestType.LOAN_APPLICATION,
    RequestType.LOAN_DISBURSEMENT,
    RequestType.SAVINGS_WITHDRAWAL,
    RequestType.ACCOUNT_CLOSURE,
    RequestType.PERSONAL_SAVINGS_WITHDRAWAL,
})
