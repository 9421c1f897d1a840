"""
Chart-of-accounts API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from waqf_ledger.api.errors import http_error
from waqf_ledger.models.base import get_db
from waqf_ledger.services.chart_of_accounts_service import ChartOfAccountsService
from waqf_ledger.schemas.account import (
    AccountCreate,
    AccountUpdate,
    AccountResponse,
    AccountTypeCount,
)

router = APIRouter(prefix="/accounts", tags=["Chart of Accounts"])


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    request: AccountCreate,
    db: Session = Depends(get_db),
):
    """Create a chart-of-accounts node."""
    service = ChartOfAccountsService(db)
    try:
        account = service.create_account(request)
        db.commit()
        return account
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    postable_only: bool = False,
    db: Session = Depends(get_db),
):
    service = ChartOfAccountsService(db)
    if postable_only:
        return service.list_active_leaf_accounts()
    return service.list_accounts()


@router.get("/distribution", response_model=list[AccountTypeCount])
def account_distribution(db: Session = Depends(get_db)):
    """Count of active accounts per account type."""
    service = ChartOfAccountsService(db)
    return [
        AccountTypeCount(account_type=account_type, count=count)
        for account_type, count in service.type_distribution().items()
    ]


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    service = ChartOfAccountsService(db)
    try:
        return service.get_account(account_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    request: AccountUpdate,
    db: Session = Depends(get_db),
):
    """
    Partially update an account.

    Changes that would break the tree (a header with children
    becoming postable, an account with lines becoming a header)
    are rejected.
    """
    service = ChartOfAccountsService(db)
    try:
        account = service.update_account(account_id, request)
        db.commit()
        return account
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.delete("/{account_id}", status_code=204)
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Delete an unreferenced account. Referenced accounts return 409."""
    service = ChartOfAccountsService(db)
    try:
        service.delete_account(account_id)
        db.commit()
    except ValueError as e:
        db.rollback()
        raise http_error(e)
