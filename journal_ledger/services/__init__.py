"""Business logic services."""

from journal_ledger.services.account_service import AccountService
from journal_ledger.services.entry_validator import EntryValidator
from journal_ledger.services.idempotency_service import IdempotencyService
from journal_ledger.services.journal_service import JournalService
from journal_ledger.services.ledger_service import LedgerService
from journal_ledger.services.posting_service import PostingService
from journal_ledger.services.security_service import SecurityService

__all__ = [
    "AccountService",
    "EntryValidator",
    "IdempotencyService",
    "JournalService",
    "LedgerService",
    "PostingService",
    "SecurityService",
]
