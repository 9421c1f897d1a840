"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. An invalid account_type
or entry status is caught at the database level, not just
in Python validation.
"""

import enum


class AccountType(str, enum.Enum):
    """The five fundamental accounting categories."""
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class AccountNature(str, enum.Enum):
    """The side of an entry that increases the account's balance."""
    DEBIT = "debit"
    CREDIT = "credit"


class EntryStatus(str, enum.Enum):
    DRAFT = "draft"
    POSTED = "posted"
    CANCELLED = "cancelled"


class ApprovalDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


class MatchType(str, enum.Enum):
    """How a bank transaction was linked to a journal entry."""
    AUTO = "auto"
    MANUAL = "manual"
    SUGGESTED = "suggested"


# Normal balance side for each account type. Used when an account
# is created without an explicit nature.
DEFAULT_NATURE: dict[AccountType, AccountNature] = {
    AccountType.ASSET: AccountNature.DEBIT,
    AccountType.EXPENSE: AccountNature.DEBIT,
    AccountType.LIABILITY: AccountNature.CREDIT,
    AccountType.EQUITY: AccountNature.CREDIT,
    AccountType.REVENUE: AccountNature.CREDIT,
}
