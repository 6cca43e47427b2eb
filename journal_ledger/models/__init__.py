"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from journal_ledger.models.base import Base
from journal_ledger.models.enums import AccountType
from journal_ledger.models.account import Account
from journal_ledger.models.journal_entry import JournalEntry
from journal_ledger.models.journal_line import JournalLine
from journal_ledger.models.idempotency_key import IdempotencyKey
from journal_ledger.models.api_key import ApiKey

__all__ = [
    "Base",
    "AccountType",
    "Account",
    "JournalEntry",
    "JournalLine",
    "IdempotencyKey",
    "ApiKey",
]
