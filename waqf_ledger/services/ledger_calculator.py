"""
Ledger calculator: trial balance, general ledger and statements.

Everything here is read-only. Only posted entries count; drafts
and cancelled entries never reach a report. Every balance is
computed with signed_delta, the same rule posting uses, so the
reports reconcile with the cached account balances.
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from waqf_ledger.config import get_settings
from waqf_ledger.models.account import Account
from waqf_ledger.models.enums import AccountType, EntryStatus
from waqf_ledger.models.fiscal_year import FiscalYear, OpeningBalance
from waqf_ledger.models.journal_entry import JournalEntry, JournalEntryLine
from waqf_ledger.schemas.reports import (
    TrialBalance,
    TrialBalanceRow,
    GeneralLedger,
    GeneralLedgerLine,
    BalanceSheet,
    AssetsSection,
    LiabilitiesSection,
    EquitySection,
    IncomeStatement,
    RevenueSection,
    ExpensesSection,
    FinancialSummary,
)
from waqf_ledger.services.chart_of_accounts_service import (
    ChartOfAccountsService,
    signed_delta,
)
from waqf_ledger.services.fiscal_year_service import FiscalYearService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Statement buckets keyed by the first two code segments. The "" key
# is the bucket for prefixes that are not listed.
STATEMENT_BUCKETS: dict[AccountType, dict[str, str]] = {
    AccountType.ASSET: {"1.1": "current", "1.2": "fixed", "": "current"},
    AccountType.LIABILITY: {"2.1": "current", "2.2": "long_term", "": "current"},
    AccountType.EQUITY: {"3.1": "capital", "3.2": "reserves", "": "capital"},
    AccountType.REVENUE: {"4.1": "property", "4.2": "investment", "": "other"},
    AccountType.EXPENSE: {
        "5.1": "administrative",
        "5.2": "operational",
        "5.3": "beneficiaries",
        "": "operational",
    },
}


def _dec(value) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


def code_prefix(code: str) -> str:
    """First two dot-segments of an account code: '1.1.2' -> '1.1'."""
    return ".".join(code.split(".")[:2])


def statement_bucket(account: Account) -> str:
    buckets = STATEMENT_BUCKETS[account.account_type]
    return buckets.get(code_prefix(account.code), buckets[""])


class LedgerCalculator:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.accounts = ChartOfAccountsService(db)
        self.fiscal_years = FiscalYearService(db)

    def trial_balance(self, fiscal_year_id: int | None = None) -> TrialBalance:
        """
        Debit and credit totals per account over posted entries.

        Rows cover every active leaf account, plus any account that
        still has posted activity in scope after being deactivated,
        so the grand totals always reflect the whole ledger.

        Each posted entry may carry a gap of up to BALANCE_TOLERANCE,
        so the totals are balanced while the difference stays within
        that tolerance times the number of posted entries in scope.
        The difference is always reported; only a gap beyond that
        allowance is logged as an error.
        """
        query = (
            select(
                JournalEntryLine.account_id,
                func.coalesce(func.sum(JournalEntryLine.debit_amount), 0),
                func.coalesce(func.sum(JournalEntryLine.credit_amount), 0),
            )
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(JournalEntry.status == EntryStatus.POSTED)
            .group_by(JournalEntryLine.account_id)
        )
        if fiscal_year_id is not None:
            query = query.where(JournalEntry.fiscal_year_id == fiscal_year_id)

        totals = {
            account_id: (_dec(debit), _dec(credit))
            for account_id, debit, credit in self.db.execute(query).all()
        }

        accounts = {a.id: a for a in self.accounts.list_active_leaf_accounts()}
        extra_ids = set(totals) - set(accounts)
        if extra_ids:
            for account in self.db.execute(
                select(Account).where(Account.id.in_(extra_ids))
            ).scalars().all():
                accounts[account.id] = account

        rows = []
        for account in sorted(accounts.values(), key=lambda a: a.code):
            debit_total, credit_total = totals.get(account.id, (ZERO, ZERO))
            rows.append(TrialBalanceRow(
                account_id=account.id,
                code=account.code,
                name=account.name_ar,
                account_type=account.account_type,
                debit_total=debit_total,
                credit_total=credit_total,
                balance=signed_delta(
                    account.account_nature, debit_total, credit_total
                ),
            ))

        total_debit = sum((row.debit_total for row in rows), ZERO)
        total_credit = sum((row.credit_total for row in rows), ZERO)
        difference = total_debit - total_credit
        is_balanced = abs(difference) <= self._allowed_difference(fiscal_year_id)
        if not is_balanced:
            logger.error(
                "Trial balance out of balance (fiscal year %s): "
                "debits=%s credits=%s difference=%s",
                fiscal_year_id, total_debit, total_credit, difference,
            )

        return TrialBalance(
            fiscal_year_id=fiscal_year_id,
            accounts=rows,
            total_debit=total_debit,
            total_credit=total_credit,
            difference=difference,
            is_balanced=is_balanced,
        )

    def _allowed_difference(self, fiscal_year_id: int | None) -> Decimal:
        query = select(func.count(JournalEntry.id)).where(
            JournalEntry.status == EntryStatus.POSTED
        )
        if fiscal_year_id is not None:
            query = query.where(JournalEntry.fiscal_year_id == fiscal_year_id)
        return self.settings.BALANCE_TOLERANCE * self.db.execute(query).scalar_one()

    def general_ledger(
        self,
        account_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
        fiscal_year_id: int | None = None,
    ) -> GeneralLedger:
        """
        Posted activity on one account with opening and closing balances.

        The fiscal year is the explicit one, else the one containing
        date_from, else the active one. Opening balance is that year's
        opening-balance row plus posted activity in the year before
        date_from. Closing balance replays the posting delta rule.
        """
        account = self.accounts.get_account(account_id)
        fiscal_year = self._resolve_year(fiscal_year_id, date_from)

        opening_balance = ZERO
        if fiscal_year is not None:
            opening_balance += _dec(self.db.execute(
                select(OpeningBalance.opening_balance).where(
                    OpeningBalance.fiscal_year_id == fiscal_year.id,
                    OpeningBalance.account_id == account.id,
                )
            ).scalar_one_or_none())

        filters = [
            JournalEntryLine.account_id == account.id,
            JournalEntry.status == EntryStatus.POSTED,
        ]
        if fiscal_year is not None:
            filters.append(JournalEntry.fiscal_year_id == fiscal_year.id)

        if date_from is not None:
            prior = self.db.execute(
                select(
                    func.coalesce(func.sum(JournalEntryLine.debit_amount), 0),
                    func.coalesce(func.sum(JournalEntryLine.credit_amount), 0),
                )
                .select_from(JournalEntryLine)
                .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
                .where(*filters, JournalEntry.entry_date < date_from)
            ).one()
            opening_balance += signed_delta(
                account.account_nature, _dec(prior[0]), _dec(prior[1])
            )

        in_range = (
            select(JournalEntryLine, JournalEntry)
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(*filters)
        )
        if date_from is not None:
            in_range = in_range.where(JournalEntry.entry_date >= date_from)
        if date_to is not None:
            in_range = in_range.where(JournalEntry.entry_date <= date_to)
        in_range = in_range.order_by(
            JournalEntry.entry_date, JournalEntry.id, JournalEntryLine.line_number
        )

        balance = opening_balance
        total_debit = ZERO
        total_credit = ZERO
        lines = []
        for line, entry in self.db.execute(in_range).all():
            debit = _dec(line.debit_amount)
            credit = _dec(line.credit_amount)
            balance += signed_delta(account.account_nature, debit, credit)
            total_debit += debit
            total_credit += credit
            lines.append(GeneralLedgerLine(
                line_id=line.id,
                entry_id=entry.id,
                entry_number=entry.entry_number,
                entry_date=entry.entry_date,
                description=line.description or entry.description,
                debit_amount=debit,
                credit_amount=credit,
                running_balance=balance,
            ))

        return GeneralLedger(
            account_id=account.id,
            code=account.code,
            name=account.name_ar,
            account_nature=account.account_nature,
            date_from=date_from,
            date_to=date_to,
            opening_balance=opening_balance,
            lines=lines,
            total_debit=total_debit,
            total_credit=total_credit,
            closing_balance=balance,
        )

    def balance_sheet(self) -> BalanceSheet:
        """Assets, liabilities and equity by bucket from cached balances."""
        buckets = self._bucket_balances()
        assets = AssetsSection(
            current=buckets[AccountType.ASSET]["current"],
            fixed=buckets[AccountType.ASSET]["fixed"],
            total=sum(buckets[AccountType.ASSET].values(), ZERO),
        )
        liabilities = LiabilitiesSection(
            current=buckets[AccountType.LIABILITY]["current"],
            long_term=buckets[AccountType.LIABILITY]["long_term"],
            total=sum(buckets[AccountType.LIABILITY].values(), ZERO),
        )
        equity = EquitySection(
            capital=buckets[AccountType.EQUITY]["capital"],
            reserves=buckets[AccountType.EQUITY]["reserves"],
            total=sum(buckets[AccountType.EQUITY].values(), ZERO),
        )
        return BalanceSheet(
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            retained_earnings=assets.total - liabilities.total - equity.total,
        )

    def income_statement(self) -> IncomeStatement:
        buckets = self._bucket_balances()
        revenue = RevenueSection(
            property=buckets[AccountType.REVENUE]["property"],
            investment=buckets[AccountType.REVENUE]["investment"],
            other=buckets[AccountType.REVENUE]["other"],
            total=sum(buckets[AccountType.REVENUE].values(), ZERO),
        )
        expenses = ExpensesSection(
            administrative=buckets[AccountType.EXPENSE]["administrative"],
            operational=buckets[AccountType.EXPENSE]["operational"],
            beneficiaries=buckets[AccountType.EXPENSE]["beneficiaries"],
            total=sum(buckets[AccountType.EXPENSE].values(), ZERO),
        )
        return IncomeStatement(
            revenue=revenue,
            expenses=expenses,
            net_income=revenue.total - expenses.total,
        )

    def financial_summary(self) -> FinancialSummary:
        totals = {
            account_type: sum(by_bucket.values(), ZERO)
            for account_type, by_bucket in self._bucket_balances().items()
        }
        return FinancialSummary(
            total_assets=totals[AccountType.ASSET],
            total_liabilities=totals[AccountType.LIABILITY],
            total_equity=totals[AccountType.EQUITY],
            total_revenue=totals[AccountType.REVENUE],
            total_expenses=totals[AccountType.EXPENSE],
            net_income=totals[AccountType.REVENUE] - totals[AccountType.EXPENSE],
        )

    # --- Helpers ---

    def _bucket_balances(self) -> dict[AccountType, dict[str, Decimal]]:
        balances: dict[AccountType, dict[str, Decimal]] = {
            account_type: {name: ZERO for name in buckets.values()}
            for account_type, buckets in STATEMENT_BUCKETS.items()
        }
        for account in self.accounts.list_active_leaf_accounts():
            bucket = statement_bucket(account)
            balances[account.account_type][bucket] += _dec(account.current_balance)
        return balances

    def _resolve_year(
        self, fiscal_year_id: int | None, date_from: date | None
    ) -> FiscalYear | None:
        if fiscal_year_id is not None:
            return self.fiscal_years.get_fiscal_year(fiscal_year_id)
        if date_from is not None:
            return self.fiscal_years.find_for_date(date_from)
        return self.fiscal_years.get_active()
