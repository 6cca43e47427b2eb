"""
Mapping of service errors to HTTP responses.

This is the only place that knows which status code each
error class gets. Every error body has the same shape:

    {"detail": "<reason>", "code": "<ERROR_CODE>", "context": {...}}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from journal_ledger.exceptions import (
    LedgerError,
    ValidationError,
    ConflictError,
    NotFoundError,
    AuthenticationError,
    StorageError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[LedgerError], int] = {
    ValidationError: 400,
    ConflictError: 409,
    NotFoundError: 404,
    AuthenticationError: 401,
    StorageError: 500,
}


def _error_response(status_code: int, reason: str, code: str, context: dict | None = None):
    body = {"detail": reason, "code": code}
    if context:
        body["context"] = context
    return JSONResponse(status_code=status_code, content=body)


async def ledger_error_handler(request: Request, exc: LedgerError):
    status_code = next(
        (status for cls, status in STATUS_CODES.items() if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.reason,
            exc_info=exc,
        )
    return _error_response(status_code, exc.reason, exc.code, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request shapes are client errors like any other: 400."""
    reasons = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        reasons.append(f"{location}: {error.get('msg')}")
    return _error_response(
        400, "; ".join(reasons) or "Invalid request", ValidationError.code
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "%s %s hit a database error", request.method, request.url.path,
        exc_info=exc,
    )
    return _error_response(500, "Storage failure", StorageError.code)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
