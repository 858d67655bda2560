"""Maps application errors to HTTP errors."""

from fastapi import HTTPException, status

from broker_crm.core.exceptions import (
    AppError,
    ContactNotFoundError,
    ReconciliationWriteError,
    StoreUnavailableError,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (ContactNotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (ReconciliationWriteError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def to_http_exception(error: AppError) -> HTTPException:
    """Build an HTTPException whose detail is ``{"error": kind, "message": ...}``."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code = code
            break
    return HTTPException(status_code=status_code, detail=error.to_dict())
