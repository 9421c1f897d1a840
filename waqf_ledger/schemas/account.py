"""
Pydantic schemas for chart-of-accounts operations.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from waqf_ledger.models.enums import AccountType, AccountNature


# Dot-segmented hierarchical code, e.g. "1", "1.1", "1.1.2"
ACCOUNT_CODE_PATTERN = r"^[0-9A-Za-z]+(\.[0-9A-Za-z]+)*$"


class AccountCreate(BaseModel):
    """Request to create a chart-of-accounts node."""
    code: str = Field(min_length=1, max_length=50, pattern=ACCOUNT_CODE_PATTERN)
    name_ar: str = Field(min_length=1, max_length=200)
    name_en: str | None = Field(default=None, max_length=200)
    description: str | None = None
    account_type: AccountType
    # Defaults from account_type when omitted
    account_nature: AccountNature | None = None
    parent_id: int | None = None
    is_header: bool = False
    is_active: bool = True


class AccountUpdate(BaseModel):
    """Partial update. Only fields that are set are applied."""
    code: str | None = Field(
        default=None, min_length=1, max_length=50, pattern=ACCOUNT_CODE_PATTERN
    )
    name_ar: str | None = Field(default=None, min_length=1, max_length=200)
    name_en: str | None = Field(default=None, max_length=200)
    description: str | None = None
    account_type: AccountType | None = None
    account_nature: AccountNature | None = None
    parent_id: int | None = None
    is_header: bool | None = None
    is_active: bool | None = None


class AccountResponse(BaseModel):
    id: int
    code: str
    name_ar: str
    name_en: str | None
    description: str | None
    account_type: AccountType
    account_nature: AccountNature
    parent_id: int | None
    is_header: bool
    is_active: bool
    current_balance: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountTypeCount(BaseModel):
    """Number of active accounts of one type."""
    account_type: AccountType
    count: int
