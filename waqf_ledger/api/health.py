"""
Health check endpoint.

Used by load balancers and monitoring to check that the
ledger service is up and can reach its database.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from waqf_ledger.config import get_settings
from waqf_ledger.models.base import get_db

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Return service status including database connectivity.

    A failed SELECT 1 marks the database unhealthy and the
    service degraded; the endpoint itself still answers 200.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError:
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": "waqf-ledger",
        "version": get_settings().APP_VERSION,
        "database": db_status,
    }
