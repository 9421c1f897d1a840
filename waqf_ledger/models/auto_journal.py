"""
Auto-journal template and generation log models.

A template maps a business trigger (a rental receipt, a loan
disbursement, ...) to the accounts a generated entry debits and
credits. The log records every generation attempt, successful
or not, and is append-only.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, Text, ForeignKey, JSON,
)
from sqlalchemy.orm import Mapped, mapped_column

from waqf_ledger.models.base import Base


class AutoJournalTemplate(Base):
    """
    A reusable recipe for a generated journal entry.

    debit_accounts and credit_accounts are ordered JSON lists of
    mappings, each naming an account (account_code or account_id)
    and its share (percentage or fixed_amount).
    """

    __tablename__ = "auto_journal_templates"

    id: Mapped[int] = mapped_column(primary_key=True)
    template_name: Mapped[str] = mapped_column(String(200), nullable=False)
    trigger_event: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    debit_accounts: Mapped[list] = mapped_column(JSON, nullable=False)
    credit_accounts: Mapped[list] = mapped_column(JSON, nullable=False)
    priority: Mapped[int] = mapped_column(nullable=False, default=100)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<AutoJournalTemplate {self.template_name} "
            f"on {self.trigger_event} (priority {self.priority})>"
        )


class AutoJournalLog(Base):
    """One attempt to generate an entry from a trigger."""

    __tablename__ = "auto_journal_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    template_id: Mapped[int | None] = mapped_column(
        ForeignKey("auto_journal_templates.id"), nullable=True, index=True
    )
    trigger_event: Mapped[str] = mapped_column(String(100), nullable=False)
    reference_type: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    reference_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(19, 4), nullable=False)
    journal_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=True
    )
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error_message: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        outcome = "ok" if self.success else "failed"
        return f"<AutoJournalLog {self.trigger_event} {self.amount} {outcome}>"
