"""Business logic services."""

from waqf_ledger.services.chart_of_accounts_service import ChartOfAccountsService
from waqf_ledger.services.fiscal_year_service import FiscalYearService
from waqf_ledger.services.journal_service import JournalService
from waqf_ledger.services.ledger_calculator import LedgerCalculator
from waqf_ledger.services.auto_journal_service import AutoJournalService
from waqf_ledger.services.reconciliation_service import ReconciliationService

__all__ = [
    "ChartOfAccountsService",
    "FiscalYearService",
    "JournalService",
    "LedgerCalculator",
    "AutoJournalService",
    "ReconciliationService",
]
