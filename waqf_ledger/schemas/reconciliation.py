"""
Pydantic schemas for bank transactions and reconciliation.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from waqf_ledger.models.enums import MatchType


class BankTransactionCreate(BaseModel):
    """One line from an external bank statement."""
    statement_reference: str | None = Field(default=None, max_length=100)
    transaction_date: date
    amount: Decimal = Field(decimal_places=4)
    description: str = Field(min_length=1, max_length=500)
    reference_number: str | None = Field(default=None, max_length=100)


class BankTransactionResponse(BaseModel):
    id: int
    statement_reference: str | None
    transaction_date: date
    amount: Decimal
    description: str
    reference_number: str | None
    is_matched: bool
    journal_entry_id: int | None

    model_config = {"from_attributes": True}


class MatchCreate(BaseModel):
    bank_transaction_id: int
    journal_entry_id: int
    match_type: MatchType = MatchType.MANUAL
    confidence_score: float = Field(default=1.0, ge=0, le=1)
    notes: str | None = None
    matched_by: str | None = Field(default=None, max_length=100)


class MatchResponse(BaseModel):
    id: int
    bank_transaction_id: int
    journal_entry_id: int
    match_type: MatchType
    confidence_score: float
    notes: str | None
    matched_by: str | None
    matched_at: datetime

    model_config = {"from_attributes": True}


class MatchSuggestion(BaseModel):
    """An advisory candidate pairing. Nothing is written until confirmed."""
    bank_transaction_id: int
    journal_entry_id: int
    entry_number: str
    confidence: float
    reasons: list[str]
