"""
Journal entry API endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from waqf_ledger.api.errors import http_error
from waqf_ledger.models.base import get_db
from waqf_ledger.models.enums import EntryStatus
from waqf_ledger.services.journal_service import JournalService
from waqf_ledger.schemas.journal import (
    JournalEntryCreate,
    JournalEntryResponse,
    JournalLineResponse,
    ApprovalRequest,
    CancelRequest,
)

router = APIRouter(prefix="/journal-entries", tags=["Journal Entries"])


@router.post("", response_model=JournalEntryResponse, status_code=201)
def create_entry(
    request: JournalEntryCreate,
    created_by: str | None = None,
    db: Session = Depends(get_db),
):
    """
    Create a draft journal entry.

    The entry must balance and every line must reference an
    active posting account, or nothing is written.
    """
    service = JournalService(db)
    try:
        entry = service.create_entry(request, created_by=created_by)
        db.commit()
        return entry
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=list[JournalEntryResponse])
def list_entries(
    status: EntryStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    fiscal_year_id: int | None = None,
    reference_type: str | None = None,
    reference_id: str | None = None,
    db: Session = Depends(get_db),
):
    service = JournalService(db)
    return service.list_entries(
        status=status,
        date_from=date_from,
        date_to=date_to,
        fiscal_year_id=fiscal_year_id,
        reference_type=reference_type,
        reference_id=reference_id,
    )


@router.get("/{entry_id}", response_model=JournalEntryResponse)
def get_entry(
    entry_id: int,
    db: Session = Depends(get_db),
):
    service = JournalService(db)
    try:
        return service.get_entry(entry_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{entry_id}/lines", response_model=list[JournalLineResponse])
def get_lines(
    entry_id: int,
    db: Session = Depends(get_db),
):
    service = JournalService(db)
    try:
        return service.get_lines(entry_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{entry_id}/post", response_model=JournalEntryResponse)
def post_entry(
    entry_id: int,
    posted_by: str | None = None,
    db: Session = Depends(get_db),
):
    """Post a draft entry and update account balances."""
    service = JournalService(db)
    try:
        entry = service.post(entry_id, posted_by=posted_by)
        db.commit()
        return entry
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{entry_id}/cancel", response_model=JournalEntryResponse)
def cancel_entry(
    entry_id: int,
    request: CancelRequest,
    db: Session = Depends(get_db),
):
    service = JournalService(db)
    try:
        entry = service.cancel(entry_id, notes=request.notes)
        db.commit()
        return entry
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.post("/{entry_id}/approval", response_model=JournalEntryResponse)
def approve_entry(
    entry_id: int,
    request: ApprovalRequest,
    db: Session = Depends(get_db),
):
    """Approve (post) or reject (cancel) a draft entry."""
    service = JournalService(db)
    try:
        entry = service.approve(
            entry_id, request.decision, notes=request.notes, actor=request.actor
        )
        db.commit()
        return entry
    except ValueError as e:
        db.rollback()
        raise http_error(e)
