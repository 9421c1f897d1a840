"""
Waqf Ledger: FastAPI application.

This is the entry point for the application.
All routers are registered here.
"""

import logging

from fastapi import FastAPI

from waqf_ledger.config import get_settings
from waqf_ledger.api.health import router as health_router
from waqf_ledger.api.accounts import router as accounts_router
from waqf_ledger.api.fiscal_years import router as fiscal_years_router
from waqf_ledger.api.journal import router as journal_router
from waqf_ledger.api.reports import router as reports_router
from waqf_ledger.api.auto_journal import router as auto_journal_router
from waqf_ledger.api.reconciliation import router as reconciliation_router

settings = get_settings()


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Double-entry general ledger for waqf administration",
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(fiscal_years_router)
app.include_router(journal_router)
app.include_router(reports_router)
app.include_router(auto_journal_router)
app.include_router(reconciliation_router)
