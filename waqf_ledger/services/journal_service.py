"""
Journal service: the core of the ledger.

This service enforces the fundamental rules:
1. Every entry must balance (debits = credits, within tolerance)
2. Lines only reference active, non-header accounts
3. Each line carries a positive amount on exactly one side
4. Entries move draft -> posted or draft -> cancelled, nothing else
5. Posting and balance propagation happen together or not at all

No other service writes journal entries directly. Business
events reach the ledger through AutoJournalService, which
calls create_entry like any other caller.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from waqf_ledger.config import get_settings
from waqf_ledger.errors import (
    ValidationError,
    NotFoundError,
    StateConflictError,
    entry_not_found,
    illegal_transition,
)
from waqf_ledger.models.account import Account
from waqf_ledger.models.audit_log import AuditLog
from waqf_ledger.models.enums import EntryStatus, ApprovalDecision
from waqf_ledger.models.journal_entry import JournalEntry, JournalEntryLine
from waqf_ledger.schemas.journal import JournalEntryCreate
from waqf_ledger.services.chart_of_accounts_service import ChartOfAccountsService
from waqf_ledger.services.fiscal_year_service import FiscalYearService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class _LineAmounts:
    """The parts of a line the ledger rules look at."""
    line_number: int
    account_id: int
    debit_amount: Decimal
    credit_amount: Decimal


class JournalService:
    """
    All journal entry operations pass through this service.

    The service takes a database session as a constructor
    argument and only flushes. Multi-step writes run inside a
    savepoint so a failure never leaves half an entry or half a
    posting behind; the caller still decides when to commit.
    """

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.accounts = ChartOfAccountsService(db)
        self.fiscal_years = FiscalYearService(db)

    # --- Entry numbers ---

    def next_entry_number(self, year: int) -> str:
        """
        Next number for the year: highest numeric suffix + 1.

        Ordering by length first keeps JV-2025-1000 above JV-2025-999.
        Uniqueness under concurrency comes from the unique constraint
        and the retry in create_entry, not from this read.
        """
        prefix = f"{self.settings.ENTRY_NUMBER_PREFIX}-{year}-"
        last_number = self.db.execute(
            select(JournalEntry.entry_number)
            .where(JournalEntry.entry_number.like(f"{prefix}%"))
            .order_by(
                func.length(JournalEntry.entry_number).desc(),
                JournalEntry.entry_number.desc(),
            )
            .limit(1)
        ).scalar_one_or_none()

        next_number = 1
        if last_number:
            match = re.fullmatch(rf"{re.escape(prefix)}(\d+)", last_number)
            if match:
                next_number = int(match.group(1)) + 1

        return f"{prefix}{next_number:03d}"

    # --- Create ---

    def create_entry(
        self, request: JournalEntryCreate, created_by: str | None = None
    ) -> JournalEntry:
        """
        Validate and persist a draft entry with its lines.

        Raises ValidationError if the lines are empty, one-sided
        rules are broken, an account is missing or not postable,
        or the entry does not balance. Nothing is written then.
        """
        amounts = [
            _LineAmounts(
                line_number=index,
                account_id=line.account_id,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
            )
            for index, line in enumerate(request.lines, start=1)
        ]
        self._validate_lines(amounts)
        fiscal_year = self.fiscal_years.resolve_for_entry(
            request.entry_date, request.fiscal_year_id
        )

        retries = max(1, self.settings.ENTRY_NUMBER_RETRIES)
        for attempt in range(1, retries + 1):
            entry_number = self.next_entry_number(request.entry_date.year)
            entry = JournalEntry(
                entry_number=entry_number,
                entry_date=request.entry_date,
                description=request.description,
                fiscal_year_id=fiscal_year.id,
                status=EntryStatus.DRAFT,
                reference_type=request.reference_type,
                reference_id=request.reference_id,
                created_by=created_by,
                lines=[
                    JournalEntryLine(
                        line_number=index,
                        account_id=line.account_id,
                        debit_amount=line.debit_amount,
                        credit_amount=line.credit_amount,
                        description=line.description,
                    )
                    for index, line in enumerate(request.lines, start=1)
                ],
            )

            # Header and lines land together or not at all
            try:
                with self.db.begin_nested():
                    self.db.add(entry)
                    self.db.flush()
            except IntegrityError:
                if not self._entry_number_taken(entry_number):
                    raise
                logger.warning(
                    "Entry number %s taken concurrently (attempt %d/%d)",
                    entry_number, attempt, retries,
                )
                continue

            logger.info(
                "Created draft journal entry %s with %d lines",
                entry.entry_number, len(entry.lines),
            )
            return entry

        raise StateConflictError(
            f"Could not allocate a unique entry number for "
            f"{request.entry_date.year} after {retries} attempts"
        )

    # --- State transitions ---

    def post(
        self,
        entry_id: int,
        posted_by: str | None = None,
        notes: str | None = None,
    ) -> JournalEntry:
        """
        Post a draft entry and propagate its lines into account balances.

        The balance rule and account checks are re-run first, since
        accounts may have been deactivated since the draft was
        written. Status change and deltas share one savepoint.
        """
        entry = self._load_for_transition(entry_id, EntryStatus.POSTED)

        with self.db.begin_nested():
            self._validate_lines([
                _LineAmounts(
                    line_number=line.line_number,
                    account_id=line.account_id,
                    debit_amount=line.debit_amount,
                    credit_amount=line.credit_amount,
                )
                for line in entry.lines
            ])
            entry.status = EntryStatus.POSTED
            entry.posted_at = datetime.utcnow()
            entry.posted_by = posted_by
            if notes is not None:
                entry.notes = notes
            self.accounts.apply_balance_deltas(entry.lines)
            self._audit(entry, "entry_posted", posted_by)
            self.db.flush()

        logger.info("Posted journal entry %s", entry.entry_number)
        return entry

    def cancel(
        self,
        entry_id: int,
        notes: str | None = None,
        cancelled_by: str | None = None,
    ) -> JournalEntry:
        """
        Cancel a draft entry.

        Balances are never touched: a cancellable entry has by
        definition never been posted.
        """
        entry = self._load_for_transition(entry_id, EntryStatus.CANCELLED)
        entry.status = EntryStatus.CANCELLED
        if notes is not None:
            entry.notes = notes
        self._audit(entry, "entry_cancelled", cancelled_by)
        self.db.flush()
        logger.info("Cancelled journal entry %s", entry.entry_number)
        return entry

    def approve(
        self,
        entry_id: int,
        decision: ApprovalDecision,
        notes: str | None = None,
        actor: str | None = None,
    ) -> JournalEntry:
        """Post on approval, cancel on rejection. Notes are kept either way."""
        if decision == ApprovalDecision.APPROVE:
            return self.post(entry_id, posted_by=actor, notes=notes)
        return self.cancel(entry_id, notes=notes, cancelled_by=actor)

    # --- Reads ---

    def get_entry(self, entry_id: int) -> JournalEntry:
        entry = self.db.get(JournalEntry, entry_id)
        if not entry:
            raise NotFoundError(entry_not_found(entry_id))
        return entry

    def get_lines(self, entry_id: int) -> list[JournalEntryLine]:
        return list(self.get_entry(entry_id).lines)

    def list_entries(
        self,
        status: EntryStatus | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        fiscal_year_id: int | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> list[JournalEntry]:
        """Return entries matching the filters, newest first."""
        query = select(JournalEntry)
        if status is not None:
            query = query.where(JournalEntry.status == status)
        if date_from is not None:
            query = query.where(JournalEntry.entry_date >= date_from)
        if date_to is not None:
            query = query.where(JournalEntry.entry_date <= date_to)
        if fiscal_year_id is not None:
            query = query.where(JournalEntry.fiscal_year_id == fiscal_year_id)
        if reference_type is not None:
            query = query.where(JournalEntry.reference_type == reference_type)
        if reference_id is not None:
            query = query.where(JournalEntry.reference_id == reference_id)

        entries = self.db.execute(
            query.order_by(JournalEntry.entry_date.desc(), JournalEntry.id.desc())
        ).scalars().all()
        return list(entries)

    # --- Helpers ---

    def _validate_lines(self, lines: list[_LineAmounts]) -> dict[int, Account]:
        if not lines:
            raise ValidationError("Journal entry must have at least one line")

        for line in lines:
            has_debit = line.debit_amount > ZERO
            has_credit = line.credit_amount > ZERO
            if has_debit and has_credit:
                raise ValidationError(
                    f"Line {line.line_number} has both a debit and a credit amount"
                )
            if not has_debit and not has_credit:
                raise ValidationError(f"Line {line.line_number} has no amount")

        account_ids = {line.account_id for line in lines}
        accounts = self.db.execute(
            select(Account).where(Account.id.in_(account_ids))
        ).scalars().all()
        accounts_by_id = {a.id: a for a in accounts}

        for line in lines:
            account = accounts_by_id.get(line.account_id)
            if account is None:
                raise ValidationError(
                    f"Line {line.line_number}: account {line.account_id} not found"
                )
            if account.is_header:
                raise ValidationError(
                    f"Line {line.line_number}: account {account.code} is a "
                    f"header account and cannot be posted to"
                )
            if not account.is_active:
                raise ValidationError(
                    f"Line {line.line_number}: account {account.code} is not active"
                )

        total_debits = sum((line.debit_amount for line in lines), ZERO)
        total_credits = sum((line.credit_amount for line in lines), ZERO)
        if abs(total_debits - total_credits) > self.settings.BALANCE_TOLERANCE:
            raise ValidationError(
                f"Journal entry does not balance: "
                f"debits={total_debits}, credits={total_credits}"
            )

        return accounts_by_id

    def _load_for_transition(
        self, entry_id: int, target: EntryStatus
    ) -> JournalEntry:
        # Row lock so two concurrent posts cannot both see a draft
        entry = self.db.execute(
            select(JournalEntry)
            .where(JournalEntry.id == entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not entry:
            raise NotFoundError(entry_not_found(entry_id))
        if not entry.can_transition_to(target):
            raise StateConflictError(
                illegal_transition(
                    entry.entry_number, entry.status.value, target.value
                )
            )
        return entry

    def _entry_number_taken(self, entry_number: str) -> bool:
        return self.db.execute(
            select(JournalEntry.id).where(JournalEntry.entry_number == entry_number)
        ).first() is not None

    def _audit(self, entry: JournalEntry, event_type: str, actor: str | None) -> None:
        self.db.add(AuditLog(
            event_type=event_type,
            entity_type="journal_entry",
            entity_id=entry.id,
            actor=actor,
            details=(
                f"{entry.entry_number}: debits={entry.total_debit}, "
                f"credits={entry.total_credit}"
            ),
        ))
