"""
Pydantic schemas for auto-journal templates and generation.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class AccountMapping(BaseModel):
    """
    One side of a template: which account, and how much of it.

    Exactly one of account_code / account_id names the account,
    and exactly one of percentage / fixed_amount sizes the line.
    """
    account_code: str | None = Field(default=None, max_length=50)
    account_id: int | None = None
    percentage: Decimal | None = Field(default=None, gt=0, le=100)
    fixed_amount: Decimal | None = Field(default=None, gt=0, decimal_places=4)

    @model_validator(mode="after")
    def exactly_one_of_each(self):
        if (self.account_code is None) == (self.account_id is None):
            raise ValueError("exactly one of account_code or account_id is required")
        if (self.percentage is None) == (self.fixed_amount is None):
            raise ValueError("exactly one of percentage or fixed_amount is required")
        return self


class TemplateCreate(BaseModel):
    template_name: str = Field(min_length=1, max_length=200)
    trigger_event: str = Field(min_length=1, max_length=100)
    description: str | None = None
    debit_accounts: list[AccountMapping] = Field(min_length=1)
    credit_accounts: list[AccountMapping] = Field(min_length=1)
    priority: int = 100
    is_active: bool = True


class TemplateUpdate(BaseModel):
    template_name: str | None = Field(default=None, min_length=1, max_length=200)
    trigger_event: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    debit_accounts: list[AccountMapping] | None = Field(default=None, min_length=1)
    credit_accounts: list[AccountMapping] | None = Field(default=None, min_length=1)
    priority: int | None = None
    is_active: bool | None = None


class TemplateResponse(BaseModel):
    id: int
    template_name: str
    trigger_event: str
    description: str | None
    debit_accounts: list[AccountMapping]
    credit_accounts: list[AccountMapping]
    priority: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AutoJournalRequest(BaseModel):
    """A business event asking the ledger for a generated entry."""
    trigger_event: str = Field(min_length=1, max_length=100)
    amount: Decimal = Field(gt=0, decimal_places=4)
    reference_type: str | None = Field(default=None, max_length=50)
    reference_id: str | None = Field(default=None, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    entry_date: date | None = None
    created_by: str | None = Field(default=None, max_length=100)


class AutoJournalLogResponse(BaseModel):
    id: int
    template_id: int | None
    trigger_event: str
    reference_type: str | None
    reference_id: str | None
    amount: Decimal
    journal_entry_id: int | None
    success: bool
    error_message: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
