"""
Pydantic schemas for fiscal years and opening balances.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class FiscalYearCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    start_date: date
    end_date: date
    is_active: bool = False

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class FiscalYearResponse(BaseModel):
    id: int
    name: str
    start_date: date
    end_date: date
    is_active: bool
    is_closed: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class OpeningBalanceSet(BaseModel):
    account_id: int
    opening_balance: Decimal = Field(decimal_places=4)


class OpeningBalanceResponse(BaseModel):
    id: int
    fiscal_year_id: int
    account_id: int
    opening_balance: Decimal

    model_config = {"from_attributes": True}
