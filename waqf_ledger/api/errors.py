"""
Translate ledger errors into HTTP errors.
"""

from fastapi import HTTPException

from waqf_ledger.errors import (
    NotFoundError,
    StateConflictError,
    ReferentialIntegrityError,
)


def status_for(error: ValueError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, (StateConflictError, ReferentialIntegrityError)):
        return 409
    return 400


def http_error(error: ValueError) -> HTTPException:
    return HTTPException(status_code=status_for(error), detail=str(error))
