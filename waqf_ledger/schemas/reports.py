"""
Pydantic schemas for derived ledger reports.

All of these are computed on read from posted entries or from
cached account balances; none of them is stored.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from waqf_ledger.models.enums import AccountType, AccountNature


class TrialBalanceRow(BaseModel):
    account_id: int
    code: str
    name: str
    account_type: AccountType
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal


class TrialBalance(BaseModel):
    fiscal_year_id: int | None
    accounts: list[TrialBalanceRow]
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal
    is_balanced: bool


class GeneralLedgerLine(BaseModel):
    line_id: int
    entry_id: int
    entry_number: str
    entry_date: date
    description: str | None
    debit_amount: Decimal
    credit_amount: Decimal
    running_balance: Decimal


class GeneralLedger(BaseModel):
    account_id: int
    code: str
    name: str
    account_nature: AccountNature
    date_from: date | None
    date_to: date | None
    opening_balance: Decimal
    lines: list[GeneralLedgerLine]
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal


class AssetsSection(BaseModel):
    current: Decimal
    fixed: Decimal
    total: Decimal


class LiabilitiesSection(BaseModel):
    current: Decimal
    long_term: Decimal
    total: Decimal


class EquitySection(BaseModel):
    capital: Decimal
    reserves: Decimal
    total: Decimal


class BalanceSheet(BaseModel):
    assets: AssetsSection
    liabilities: LiabilitiesSection
    equity: EquitySection
    retained_earnings: Decimal


class RevenueSection(BaseModel):
    property: Decimal
    investment: Decimal
    other: Decimal
    total: Decimal


class ExpensesSection(BaseModel):
    administrative: Decimal
    operational: Decimal
    beneficiaries: Decimal
    total: Decimal


class IncomeStatement(BaseModel):
    revenue: RevenueSection
    expenses: ExpensesSection
    net_income: Decimal


class FinancialSummary(BaseModel):
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal
