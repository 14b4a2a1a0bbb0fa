"""Conversione degli errori applicativi in risposte HTTP."""
from __future__ import annotations

from fastapi import HTTPException, status

from app.services import (
    AgencyNotFoundError,
    CanvasNotFoundError,
    CteNotFoundError,
    DuplicateUserError,
    ExtractionError,
    OperatorNotFoundError,
    PermissionDeniedError,
    UserNotFoundError,
)
from app.services.reconciliation import (
    CustomerNotFoundError,
    DuplicateCustomerError,
    InvalidMergeError,
    MissingFiscalCodeError,
    PropertyNotFoundError,
)

_STATUS_BY_ERROR: tuple[tuple[type[Exception], int], ...] = (
    (CustomerNotFoundError, status.HTTP_404_NOT_FOUND),
    (PropertyNotFoundError, status.HTTP_404_NOT_FOUND),
    (AgencyNotFoundError, status.HTTP_404_NOT_FOUND),
    (UserNotFoundError, status.HTTP_404_NOT_FOUND),
    (CteNotFoundError, status.HTTP_404_NOT_FOUND),
    (CanvasNotFoundError, status.HTTP_404_NOT_FOUND),
    (OperatorNotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateCustomerError, status.HTTP_409_CONFLICT),
    (DuplicateUserError, status.HTTP_409_CONFLICT),
    (MissingFiscalCodeError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidMergeError, status.HTTP_400_BAD_REQUEST),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
)

DOMAIN_ERRORS = tuple(error for error, _ in _STATUS_BY_ERROR)


def to_http_exception(exc: Exception) -> HTTPException:
    if isinstance(exc, ExtractionError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Analisi del documento non riuscita",
        )
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


__all__ = ["DOMAIN_ERRORS", "to_http_exception"]
