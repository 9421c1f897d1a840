"""
Fiscal year and opening balance API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from waqf_ledger.api.errors import http_error
from waqf_ledger.models.base import get_db
from waqf_ledger.services.fiscal_year_service import FiscalYearService
from waqf_ledger.schemas.fiscal_year import (
    FiscalYearCreate,
    FiscalYearResponse,
    OpeningBalanceSet,
    OpeningBalanceResponse,
)

router = APIRouter(prefix="/fiscal-years", tags=["Fiscal Years"])


@router.post("", response_model=FiscalYearResponse, status_code=201)
def create_fiscal_year(
    request: FiscalYearCreate,
    db: Session = Depends(get_db),
):
    service = FiscalYearService(db)
    try:
        fiscal_year = service.create_fiscal_year(request)
        db.commit()
        return fiscal_year
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=list[FiscalYearResponse])
def list_fiscal_years(db: Session = Depends(get_db)):
    return FiscalYearService(db).list_fiscal_years()


@router.get("/active", response_model=FiscalYearResponse)
def get_active_fiscal_year(db: Session = Depends(get_db)):
    fiscal_year = FiscalYearService(db).get_active()
    if fiscal_year is None:
        raise HTTPException(status_code=404, detail="No active fiscal year")
    return fiscal_year


@router.post("/{fiscal_year_id}/activate", response_model=FiscalYearResponse)
def activate_fiscal_year(
    fiscal_year_id: int,
    db: Session = Depends(get_db),
):
    service = FiscalYearService(db)
    try:
        fiscal_year = service.activate(fiscal_year_id)
        db.commit()
        return fiscal_year
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{fiscal_year_id}/close", response_model=FiscalYearResponse)
def close_fiscal_year(
    fiscal_year_id: int,
    db: Session = Depends(get_db),
):
    """Close a year. Returns 409 while draft entries remain in it."""
    service = FiscalYearService(db)
    try:
        fiscal_year = service.close_fiscal_year(fiscal_year_id)
        db.commit()
        return fiscal_year
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.put(
    "/{fiscal_year_id}/opening-balances",
    response_model=OpeningBalanceResponse,
)
def set_opening_balance(
    fiscal_year_id: int,
    request: OpeningBalanceSet,
    db: Session = Depends(get_db),
):
    service = FiscalYearService(db)
    try:
        opening = service.set_opening_balance(fiscal_year_id, request)
        db.commit()
        return opening
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get(
    "/{fiscal_year_id}/opening-balances",
    response_model=list[OpeningBalanceResponse],
)
def list_opening_balances(
    fiscal_year_id: int,
    db: Session = Depends(get_db),
):
    try:
        return FiscalYearService(db).list_opening_balances(fiscal_year_id)
    except ValueError as e:
        raise http_error(e)
