from typing import NoReturn

from fastapi import HTTPException

from app.services.errors import (
    CatalogValidationError,
    IdentityAuthError,
    IdentityConflictError,
    IdentityValidationError,
    SchedulerError,
)


def raise_scheduler_http_error(exc: SchedulerError) -> NoReturn:
    if isinstance(exc, (IdentityValidationError, CatalogValidationError)):
        raise HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, IdentityAuthError):
        raise HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, IdentityConflictError):
        raise HTTPException(status_code=409, detail=str(exc))
    # Store failures: generic message only, detail stays in the server log.
    raise HTTPException(status_code=503, detail=str(exc))
