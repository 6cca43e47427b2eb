"""
Journal service: the write path for journal entries.

Each posting runs the same steps:
1. Validate and normalize the submitted entry
2. Claim the idempotency key, if the client sent one
   (a completed earlier attempt is returned as a replay)
3. Post header and lines in one transaction
4. Finalize the idempotency record with the new entry id

Validation failures happen before anything is written.
This service owns the commit boundaries of the whole sequence.
"""

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable

from sqlalchemy.orm import Session

from journal_ledger.config import Settings, get_settings
from journal_ledger.exceptions import ConflictError, StorageError
from journal_ledger.models.base import utcnow
from journal_ledger.models.journal_entry import JournalEntry
from journal_ledger.schemas.journal import (
    JournalEntryCreate,
    JournalLineCreate,
    ReverseEntryRequest,
)
from journal_ledger.services.account_service import AccountService
from journal_ledger.services.entry_validator import EntryValidator
from journal_ledger.services.idempotency_service import IdempotencyService
from journal_ledger.services.ledger_service import LedgerService
from journal_ledger.services.posting_service import PostingService
from journal_ledger.utils.hashing import hash_request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostingResult:
    """
    entry:     the created entry, or the earlier one on a replay
    replayed:  True when no new entry was created
    finalized: False when the idempotency record could not be
               updated after the entry committed
    """
    entry: JournalEntry
    replayed: bool = False
    finalized: bool = True


class JournalService:

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        today: Callable[[], date] = date.today,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.accounts = AccountService(db)
        self.ledger = LedgerService(db)
        self.posting = PostingService(db)
        self.idempotency = IdempotencyService(
            db, self.settings, clock=clock, sleep=sleep
        )
        self.validator = EntryValidator(
            self.accounts,
            entry_exists=self.ledger.entry_exists,
            reject_duplicate_accounts=self.settings.REJECT_DUPLICATE_ACCOUNTS,
            today=today,
        )

    def create_entry(
        self,
        payload: JournalEntryCreate,
        idempotency_key: str | None = None,
        scope_token: str | None = None,
    ) -> PostingResult:
        """
        Validate and post a journal entry.

        Without an idempotency key every call posts. With one,
        the same key and payload yield the same entry; the same
        key with another payload raises ConflictError.
        """
        normalized = self.validator.validate(payload)

        if not idempotency_key:
            return PostingResult(self.posting.post(normalized))

        key_hash = self.idempotency.key_hash_for(idempotency_key, scope_token)
        request_hash = hash_request(payload.fingerprint_payload())

        claim = self.idempotency.claim(key_hash, request_hash)
        if claim.is_replay:
            logger.info(
                "Idempotent replay of entry %s for key %s",
                claim.entry_id,
                key_hash[:12],
            )
            return PostingResult(
                self.ledger.get_entry(claim.entry_id), replayed=True
            )

        try:
            entry = self.posting.post(normalized, idempotency_key_hash=key_hash)
        except StorageError:
            # A concurrent attempt with this key may have won the commit
            existing_id = self.idempotency.committed_entry_for(key_hash)
            if existing_id is None:
                raise
            self.idempotency.finalize(key_hash, existing_id)
            return PostingResult(
                self.ledger.get_entry(existing_id), replayed=True
            )

        finalized = self.idempotency.finalize(key_hash, entry.id)
        return PostingResult(entry, finalized=finalized)

    def reverse_entry(
        self,
        entry_id: int,
        request: ReverseEntryRequest | None = None,
        idempotency_key: str | None = None,
        scope_token: str | None = None,
    ) -> PostingResult:
        """
        Post an entry that cancels entry_id.

        The reversal mirrors every line with debit and credit
        swapped and points back through reverses_entry_id. The
        original entry is not modified. An entry can be reversed
        once.
        """
        request = request or ReverseEntryRequest()
        original = self.ledger.get_entry(entry_id)

        existing = self.ledger.find_reversal_of(entry_id)
        if existing is not None:
            if idempotency_key and existing.idempotency_key_hash == (
                self.idempotency.key_hash_for(idempotency_key, scope_token)
            ):
                return PostingResult(
                    self.ledger.get_entry(existing.id), replayed=True
                )
            raise ConflictError(
                f"Entry {entry_id} has already been reversed by entry "
                f"{existing.id}",
                {"entry_id": entry_id, "reversal_entry_id": existing.id},
            )

        payload = JournalEntryCreate(
            date=(
                request.date
                if request.date is not None
                else self.validator.today().isoformat()
            ),
            narration=request.narration or f"Reversal of entry {original.id}",
            lines=[
                JournalLineCreate(
                    account_id=line.account_id,
                    debit_cents=line.credit_cents,
                    credit_cents=line.debit_cents,
                )
                for line in original.lines
            ],
            reverses_entry_id=original.id,
        )
        return self.create_entry(payload, idempotency_key, scope_token)
