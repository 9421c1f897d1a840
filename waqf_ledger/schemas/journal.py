"""
Pydantic schemas for journal entries.

These define the API contract. Shape checks (non-negative
amounts, field lengths) live here; ledger rules (balance,
postable accounts, one-sided lines) live in JournalService so
that every caller, HTTP or not, gets the same typed errors.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from waqf_ledger.models.enums import EntryStatus, ApprovalDecision


# --- Request Schemas ---

class JournalLineCreate(BaseModel):
    """A single debit or credit posting within an entry."""
    account_id: int
    debit_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=4)
    credit_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=4)
    description: str | None = Field(default=None, max_length=500)


class JournalEntryCreate(BaseModel):
    """
    A complete entry: header plus ordered lines.

    fiscal_year_id may be omitted; the fiscal year containing
    entry_date (or else the active one) is used.
    """
    entry_date: date
    description: str = Field(min_length=1, max_length=500)
    fiscal_year_id: int | None = None
    reference_type: str | None = Field(default=None, max_length=50)
    reference_id: str | None = Field(default=None, max_length=100)
    lines: list[JournalLineCreate] = Field(default_factory=list)


class ApprovalRequest(BaseModel):
    decision: ApprovalDecision
    notes: str | None = None
    actor: str | None = Field(default=None, max_length=100)


class CancelRequest(BaseModel):
    notes: str | None = None


# --- Response Schemas ---

class JournalLineResponse(BaseModel):
    id: int
    line_number: int
    account_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    description: str | None

    model_config = {"from_attributes": True}


class JournalEntryResponse(BaseModel):
    id: int
    entry_number: str
    entry_date: date
    description: str
    fiscal_year_id: int
    status: EntryStatus
    reference_type: str | None
    reference_id: str | None
    notes: str | None
    created_by: str | None
    posted_by: str | None
    posted_at: datetime | None
    created_at: datetime
    lines: list[JournalLineResponse]

    model_config = {"from_attributes": True}
