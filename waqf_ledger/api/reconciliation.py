"""
Bank reconciliation API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from waqf_ledger.api.errors import http_error
from waqf_ledger.models.base import get_db
from waqf_ledger.services.reconciliation_service import ReconciliationService
from waqf_ledger.schemas.reconciliation import (
    BankTransactionCreate,
    BankTransactionResponse,
    MatchCreate,
    MatchResponse,
    MatchSuggestion,
)

router = APIRouter(prefix="/bank", tags=["Bank Reconciliation"])


@router.post(
    "/transactions",
    response_model=list[BankTransactionResponse],
    status_code=201,
)
def import_transactions(
    requests: list[BankTransactionCreate],
    db: Session = Depends(get_db),
):
    """Import bank statement lines as unmatched transactions."""
    service = ReconciliationService(db)
    try:
        transactions = service.add_transactions(requests)
        db.commit()
        return transactions
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get("/transactions", response_model=list[BankTransactionResponse])
def list_transactions(
    unmatched_only: bool = False,
    statement_reference: str | None = None,
    db: Session = Depends(get_db),
):
    return ReconciliationService(db).list_transactions(
        unmatched_only=unmatched_only,
        statement_reference=statement_reference,
    )


@router.get("/suggestions", response_model=list[MatchSuggestion])
def suggest_matches(
    statement_reference: str | None = None,
    min_confidence: float | None = None,
    db: Session = Depends(get_db),
):
    """Candidate pairings, highest confidence first. Nothing is saved."""
    return ReconciliationService(db).suggest_matches(
        statement_reference=statement_reference,
        min_confidence=min_confidence,
    )


@router.get("/matches", response_model=list[MatchResponse])
def list_matches(db: Session = Depends(get_db)):
    return ReconciliationService(db).list_matches()


@router.post("/matches", response_model=MatchResponse, status_code=201)
def create_match(
    request: MatchCreate,
    db: Session = Depends(get_db),
):
    """Confirm a match. An already-matched transaction returns 409."""
    service = ReconciliationService(db)
    try:
        match = service.create_match(request)
        db.commit()
        return match
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.delete("/matches/{match_id}", response_model=BankTransactionResponse)
def delete_match(
    match_id: int,
    deleted_by: str | None = None,
    db: Session = Depends(get_db),
):
    """Undo a match and return the transaction, unmatched again."""
    service = ReconciliationService(db)
    try:
        transaction = service.delete_match(match_id, deleted_by=deleted_by)
        db.commit()
        return transaction
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.post("/auto-match", response_model=list[MatchResponse])
def auto_match(
    statement_reference: str | None = None,
    min_confidence: float | None = None,
    matched_by: str | None = None,
    db: Session = Depends(get_db),
):
    service = ReconciliationService(db)
    try:
        matches = service.auto_match(
            statement_reference=statement_reference,
            min_confidence=min_confidence,
            matched_by=matched_by,
        )
        db.commit()
        return matches
    except ValueError as e:
        db.rollback()
        raise http_error(e)
