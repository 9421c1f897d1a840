"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from waqf_ledger.models.base import Base
from waqf_ledger.models.enums import (
    AccountType,
    AccountNature,
    EntryStatus,
    ApprovalDecision,
    MatchType,
)
from waqf_ledger.models.audit_log import AuditLog
from waqf_ledger.models.account import Account
from waqf_ledger.models.fiscal_year import FiscalYear, OpeningBalance
from waqf_ledger.models.journal_entry import JournalEntry, JournalEntryLine
from waqf_ledger.models.auto_journal import AutoJournalTemplate, AutoJournalLog
from waqf_ledger.models.bank import BankTransaction, BankReconciliationMatch

__all__ = [
    "Base",
    "AccountType",
    "AccountNature",
    "EntryStatus",
    "ApprovalDecision",
    "MatchType",
    "AuditLog",
    "Account",
    "FiscalYear",
    "OpeningBalance",
    "JournalEntry",
    "JournalEntryLine",
    "AutoJournalTemplate",
    "AutoJournalLog",
    "BankTransaction",
    "BankReconciliationMatch",
]
