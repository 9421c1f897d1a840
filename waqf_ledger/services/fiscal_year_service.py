"""
Fiscal year service: years, the active year, and opening balances.
"""

import logging
from datetime import date

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from waqf_ledger.errors import ValidationError, NotFoundError, StateConflictError
from waqf_ledger.models.enums import EntryStatus
from waqf_ledger.models.fiscal_year import FiscalYear, OpeningBalance
from waqf_ledger.models.journal_entry import JournalEntry
from waqf_ledger.schemas.fiscal_year import FiscalYearCreate, OpeningBalanceSet
from waqf_ledger.services.chart_of_accounts_service import ChartOfAccountsService

logger = logging.getLogger(__name__)


class FiscalYearService:

    def __init__(self, db: Session):
        self.db = db

    def create_fiscal_year(self, request: FiscalYearCreate) -> FiscalYear:
        """Create a fiscal year. Overlapping years are rejected."""
        existing = self.db.execute(
            select(FiscalYear).where(FiscalYear.name == request.name)
        ).scalar_one_or_none()
        if existing:
            raise ValidationError(f"Fiscal year '{request.name}' already exists")

        overlapping = self.db.execute(
            select(FiscalYear).where(
                FiscalYear.start_date <= request.end_date,
                FiscalYear.end_date >= request.start_date,
            )
        ).scalars().first()
        if overlapping:
            raise ValidationError(
                f"Fiscal year '{request.name}' overlaps '{overlapping.name}'"
            )

        fiscal_year = FiscalYear(
            name=request.name,
            start_date=request.start_date,
            end_date=request.end_date,
        )
        self.db.add(fiscal_year)
        self.db.flush()

        if request.is_active:
            self.activate(fiscal_year.id)
        return fiscal_year

    def get_fiscal_year(self, fiscal_year_id: int) -> FiscalYear:
        fiscal_year = self.db.get(FiscalYear, fiscal_year_id)
        if not fiscal_year:
            raise NotFoundError(f"Fiscal year {fiscal_year_id} not found")
        return fiscal_year

    def list_fiscal_years(self) -> list[FiscalYear]:
        return list(
            self.db.execute(
                select(FiscalYear).order_by(FiscalYear.start_date)
            ).scalars().all()
        )

    def get_active(self) -> FiscalYear | None:
        return self.db.execute(
            select(FiscalYear).where(FiscalYear.is_active.is_(True))
        ).scalars().first()

    def find_for_date(self, day: date) -> FiscalYear | None:
        return self.db.execute(
            select(FiscalYear).where(
                FiscalYear.start_date <= day, FiscalYear.end_date >= day
            )
        ).scalars().first()

    def resolve_for_entry(
        self, entry_date: date, fiscal_year_id: int | None = None
    ) -> FiscalYear:
        """
        Pick the fiscal year an entry belongs to.

        Explicit id first, then the year containing the entry date,
        then the active year. Closed years never accept entries.
        """
        if fiscal_year_id is not None:
            fiscal_year = self.db.get(FiscalYear, fiscal_year_id)
            if not fiscal_year:
                raise ValidationError(f"Fiscal year {fiscal_year_id} not found")
        else:
            fiscal_year = self.find_for_date(entry_date) or self.get_active()
            if not fiscal_year:
                raise ValidationError(
                    f"No fiscal year covers {entry_date} and none is active"
                )

        if fiscal_year.is_closed:
            raise ValidationError(f"Fiscal year '{fiscal_year.name}' is closed")
        return fiscal_year

    def activate(self, fiscal_year_id: int) -> FiscalYear:
        """Make one fiscal year the active one; all others are deactivated."""
        fiscal_year = self.get_fiscal_year(fiscal_year_id)
        if fiscal_year.is_closed:
            raise StateConflictError(
                f"Fiscal year '{fiscal_year.name}' is closed and cannot be activated"
            )
        for other in self.db.execute(
            select(FiscalYear).where(FiscalYear.is_active.is_(True))
        ).scalars().all():
            other.is_active = False
        fiscal_year.is_active = True
        self.db.flush()
        logger.info("Activated fiscal year %s", fiscal_year.name)
        return fiscal_year

    def close_fiscal_year(self, fiscal_year_id: int) -> FiscalYear:
        """Close a year. Rejected while it still holds draft entries."""
        fiscal_year = self.get_fiscal_year(fiscal_year_id)
        if fiscal_year.is_closed:
            raise StateConflictError(f"Fiscal year '{fiscal_year.name}' is already closed")

        drafts = self.db.execute(
            select(func.count(JournalEntry.id)).where(
                JournalEntry.fiscal_year_id == fiscal_year.id,
                JournalEntry.status == EntryStatus.DRAFT,
            )
        ).scalar()
        if drafts:
            raise StateConflictError(
                f"Fiscal year '{fiscal_year.name}' still has {drafts} draft "
                f"entr{'ies' if drafts != 1 else 'y'}"
            )

        fiscal_year.is_closed = True
        fiscal_year.is_active = False
        self.db.flush()
        logger.info("Closed fiscal year %s", fiscal_year.name)
        return fiscal_year

    def set_opening_balance(
        self, fiscal_year_id: int, request: OpeningBalanceSet
    ) -> OpeningBalance:
        """Create or replace the opening balance of one account for one year."""
        fiscal_year = self.get_fiscal_year(fiscal_year_id)
        if fiscal_year.is_closed:
            raise StateConflictError(f"Fiscal year '{fiscal_year.name}' is closed")

        account = ChartOfAccountsService(self.db).get_account(request.account_id)
        if account.is_header:
            raise ValidationError(
                f"Account {account.code} is a header account and carries no balance"
            )

        opening = self.db.execute(
            select(OpeningBalance).where(
                OpeningBalance.fiscal_year_id == fiscal_year.id,
                OpeningBalance.account_id == account.id,
            )
        ).scalar_one_or_none()
        if opening is None:
            opening = OpeningBalance(
                fiscal_year_id=fiscal_year.id, account_id=account.id
            )
            self.db.add(opening)
        opening.opening_balance = request.opening_balance
        self.db.flush()
        return opening

    def list_opening_balances(self, fiscal_year_id: int) -> list[OpeningBalance]:
        self.get_fiscal_year(fiscal_year_id)
        return list(
            self.db.execute(
                select(OpeningBalance)
                .where(OpeningBalance.fiscal_year_id == fiscal_year_id)
                .order_by(OpeningBalance.account_id)
            ).scalars().all()
        )
