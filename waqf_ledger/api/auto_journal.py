"""
Auto-journal API endpoints: templates, generation, and the log.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from waqf_ledger.api.errors import http_error
from waqf_ledger.errors import LedgerError
from waqf_ledger.models.base import get_db
from waqf_ledger.services.auto_journal_service import AutoJournalService
from waqf_ledger.schemas.auto_journal import (
    TemplateCreate,
    TemplateUpdate,
    TemplateResponse,
    AutoJournalRequest,
    AutoJournalLogResponse,
)
from waqf_ledger.schemas.journal import JournalEntryResponse

router = APIRouter(prefix="/auto-journal", tags=["Auto Journal"])


@router.post("/templates", response_model=TemplateResponse, status_code=201)
def create_template(
    request: TemplateCreate,
    db: Session = Depends(get_db),
):
    service = AutoJournalService(db)
    try:
        template = service.create_template(request)
        db.commit()
        return template
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.get("/templates", response_model=list[TemplateResponse])
def list_templates(
    trigger_event: str | None = None,
    active_only: bool = False,
    db: Session = Depends(get_db),
):
    return AutoJournalService(db).list_templates(trigger_event, active_only)


@router.get("/templates/{template_id}", response_model=TemplateResponse)
def get_template(
    template_id: int,
    db: Session = Depends(get_db),
):
    try:
        return AutoJournalService(db).get_template(template_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/templates/{template_id}", response_model=TemplateResponse)
def update_template(
    template_id: int,
    request: TemplateUpdate,
    db: Session = Depends(get_db),
):
    service = AutoJournalService(db)
    try:
        template = service.update_template(template_id, request)
        db.commit()
        return template
    except ValueError as e:
        db.rollback()
        raise http_error(e)


@router.post("/apply", response_model=JournalEntryResponse, status_code=201)
def apply_template(
    request: AutoJournalRequest,
    db: Session = Depends(get_db),
):
    """
    Generate a draft entry for a business event.

    A failed attempt still leaves its row in the auto-journal
    log, so the session is committed before the error is raised.
    """
    service = AutoJournalService(db)
    try:
        entry = service.apply(request)
        db.commit()
        return entry
    except LedgerError as e:
        db.commit()
        raise http_error(e)
    except SQLAlchemyError:
        db.commit()
        raise HTTPException(status_code=500, detail="Journal generation failed")
    except ValueError as e:
        db.commit()
        raise http_error(e)


@router.get("/logs", response_model=list[AutoJournalLogResponse])
def list_logs(
    trigger_event: str | None = None,
    success: bool | None = None,
    reference_type: str | None = None,
    reference_id: str | None = None,
    db: Session = Depends(get_db),
):
    return AutoJournalService(db).list_logs(
        trigger_event=trigger_event,
        success=success,
        reference_type=reference_type,
        reference_id=reference_id,
    )
