"""
Bank statement transaction and reconciliation match models.

Bank transactions arrive from an external statement feed. A
match links one of them to a posted journal entry. The unique
constraint on bank_transaction_id means a transaction can have
at most one active match, enforced by the database itself.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, Date, DateTime, Float, Numeric, Text, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from waqf_ledger.models.base import Base
from waqf_ledger.models.enums import MatchType


class BankTransaction(Base):
    __tablename__ = "bank_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    statement_reference: Mapped[str | None] = mapped_column(
        String(100), nullable=True, index=True
    )
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    reference_number: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    is_matched: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    journal_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        state = "matched" if self.is_matched else "unmatched"
        return f"<BankTransaction {self.transaction_date} {self.amount} ({state})>"


class BankReconciliationMatch(Base):
    __tablename__ = "bank_reconciliation_matches"

    id: Mapped[int] = mapped_column(primary_key=True)
    bank_transaction_id: Mapped[int] = mapped_column(
        ForeignKey("bank_transactions.id"), unique=True, nullable=False
    )
    journal_entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    match_type: Mapped[MatchType] = mapped_column(
        SAEnum(MatchType, name="match_type_enum", create_constraint=True),
        nullable=False,
    )
    confidence_score: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    matched_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    matched_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<BankReconciliationMatch tx={self.bank_transaction_id} "
            f"entry={self.journal_entry_id} {self.match_type.value}>"
        )
