"""
Journal entry and journal entry line models.

A journal entry is one dated financial transaction. Its lines
must balance (total debits equal total credits). Entries are
created as drafts; posting makes them affect account balances
permanently. The entry has a state machine governing its
lifecycle, and invalid transitions are rejected.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Numeric, Text, ForeignKey,
    CheckConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from waqf_ledger.models.base import Base
from waqf_ledger.models.enums import EntryStatus


# Valid state transitions. Posted and cancelled are terminal.
VALID_TRANSITIONS: dict[EntryStatus, set[EntryStatus]] = {
    EntryStatus.DRAFT: {EntryStatus.POSTED, EntryStatus.CANCELLED},
    EntryStatus.POSTED: set(),
    EntryStatus.CANCELLED: set(),
}


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    entry_number: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False, index=True
    )
    entry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    fiscal_year_id: Mapped[int] = mapped_column(
        ForeignKey("fiscal_years.id"), nullable=False, index=True
    )
    status: Mapped[EntryStatus] = mapped_column(
        SAEnum(
            EntryStatus,
            name="entry_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=EntryStatus.DRAFT,
        index=True,
    )
    reference_type: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    reference_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    posted_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="entry",
        order_by="JournalEntryLine.line_number",
        cascade="all, delete-orphan",
    )

    def can_transition_to(self, new_status: EntryStatus) -> bool:
        """Check if a state transition is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} ({self.status.value})>"


class JournalEntryLine(Base):
    """
    One posting within an entry.

    A line carries a positive amount on exactly one side. The
    journal service enforces this; the table only forbids
    negative amounts.
    """

    __tablename__ = "journal_entry_lines"
    __table_args__ = (
        CheckConstraint("debit_amount >= 0", name="ck_line_debit_non_negative"),
        CheckConstraint("credit_amount >= 0", name="ck_line_credit_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    journal_entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    line_number: Mapped[int] = mapped_column(nullable=False)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    debit_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    credit_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return (
            f"<JournalEntryLine #{self.line_number} "
            f"Dr {self.debit_amount} Cr {self.credit_amount}>"
        )
