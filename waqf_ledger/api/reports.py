"""
Financial report API endpoints. All read-only.
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from waqf_ledger.api.errors import http_error
from waqf_ledger.models.base import get_db
from waqf_ledger.services.ledger_calculator import LedgerCalculator
from waqf_ledger.schemas.reports import (
    TrialBalance,
    GeneralLedger,
    BalanceSheet,
    IncomeStatement,
    FinancialSummary,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/trial-balance", response_model=TrialBalance)
def trial_balance(
    fiscal_year_id: int | None = None,
    db: Session = Depends(get_db),
):
    """
    Debit and credit totals per account over posted entries.

    An out-of-balance ledger is reported through is_balanced
    and difference, never as an error.
    """
    return LedgerCalculator(db).trial_balance(fiscal_year_id)


@router.get("/general-ledger/{account_id}", response_model=GeneralLedger)
def general_ledger(
    account_id: int,
    date_from: date | None = None,
    date_to: date | None = None,
    fiscal_year_id: int | None = None,
    db: Session = Depends(get_db),
):
    try:
        return LedgerCalculator(db).general_ledger(
            account_id,
            date_from=date_from,
            date_to=date_to,
            fiscal_year_id=fiscal_year_id,
        )
    except ValueError as e:
        raise http_error(e)


@router.get("/balance-sheet", response_model=BalanceSheet)
def balance_sheet(db: Session = Depends(get_db)):
    return LedgerCalculator(db).balance_sheet()


@router.get("/income-statement", response_model=IncomeStatement)
def income_statement(db: Session = Depends(get_db)):
    return LedgerCalculator(db).income_statement()


@router.get("/summary", response_model=FinancialSummary)
def financial_summary(db: Session = Depends(get_db)):
    return LedgerCalculator(db).financial_summary()
