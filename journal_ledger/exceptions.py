"""
Typed errors raised by the ledger services.

Services never build HTTP responses. They raise one of the
errors below and the API layer maps each class to a
status code in a single place (journal_ledger/api/errors.py).

    LedgerError
    +-- ValidationError   malformed or unbalanced input, unknown account,
    |                     future-dated entry
    +-- ConflictError     idempotency key reused with another payload,
    |                     duplicate account code, request still in flight
    +-- NotFoundError     unknown entry or account
    +-- AuthenticationError  missing or unknown API key
    +-- StorageError      database failure; nothing was committed
"""

from typing import Any


class LedgerError(Exception):
    """Base class. Carries a human-readable reason and structured details."""

    code: str = "LEDGER_ERROR"

    def __init__(self, reason: str, details: dict[str, Any] | None = None):
        super().__init__(reason)
        self.reason = reason
        self.details = details or {}


class ValidationError(LedgerError):
    code = "VALIDATION_ERROR"


class ConflictError(LedgerError):
    code = "CONFLICT"


class NotFoundError(LedgerError):
    code = "NOT_FOUND"


class AuthenticationError(LedgerError):
    code = "UNAUTHORIZED"


class StorageError(LedgerError):
    """Safe to retry: the failed unit of work was rolled back."""

    code = "STORAGE_ERROR"
