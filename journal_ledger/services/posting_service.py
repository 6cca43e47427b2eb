"""
Posting service: writes one validated entry.

The header and all of its lines are inserted and committed as
one transaction. Readers either see the whole entry or none
of it. Any database failure rolls everything back and is
raised as a StorageError.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from journal_ledger.exceptions import StorageError
from journal_ledger.models.journal_entry import JournalEntry
from journal_ledger.models.journal_line import JournalLine
from journal_ledger.services.entry_validator import NormalizedEntry

logger = logging.getLogger(__name__)


class PostingService:

    def __init__(self, db: Session):
        self.db = db

    def post(
        self,
        entry: NormalizedEntry,
        idempotency_key_hash: str | None = None,
    ) -> JournalEntry:
        """
        Persist entry and return the new JournalEntry.

        Lines get line_index 1, 2, 3, ... in the order the
        validator produced them.
        """
        journal_entry = JournalEntry(
            date=entry.date,
            narration=entry.narration,
            reverses_entry_id=entry.reverses_entry_id,
            idempotency_key_hash=idempotency_key_hash,
        )
        for line_index, line in enumerate(entry.lines, start=1):
            journal_entry.lines.append(JournalLine(
                account_id=line.account_id,
                debit_cents=line.debit_cents,
                credit_cents=line.credit_cents,
                line_index=line_index,
            ))

        try:
            self.db.add(journal_entry)
            self.db.flush()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(
                "Posting rolled back (%d lines, total %d): %s",
                len(entry.lines),
                entry.total_cents,
                e.__class__.__name__,
            )
            raise StorageError(
                "Failed to post journal entry; nothing was written"
            ) from e

        logger.info(
            "Posted entry %s dated %s: %d lines, total %d",
            journal_entry.id,
            entry.date.isoformat(),
            len(entry.lines),
            entry.total_cents,
        )
        return journal_entry
