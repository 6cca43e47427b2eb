"""
Idempotency service: makes retried postings safe.

A client that sends an Idempotency-Key gets at most one entry
per key, no matter how often or how concurrently it retries.

Claiming a key is a single atomic insert of a pending record,
backed by the primary key on key_hash. Whoever loses that
insert knows another attempt is in flight and waits for it
instead of posting. The entry itself also carries the key
hash under a unique constraint, so even an attempt that takes
over a stale claim cannot commit a second entry.

Record states:
    absent / expired  -> claim inserts a pending record
    pending           -> replay polls, recovers, or takes over
    finalized         -> replay returns the recorded entry
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from journal_ledger.config import Settings, get_settings
from journal_ledger.exceptions import ConflictError, StorageError
from journal_ledger.models.base import utcnow
from journal_ledger.models.idempotency_key import IdempotencyKey
from journal_ledger.models.journal_entry import JournalEntry
from journal_ledger.utils.hashing import derive_key_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdempotencyClaim:
    """
    Outcome of claiming a key.

    entry_id is set when the key already produced an entry
    (a replay). Otherwise the caller owns the key and must
    post, then finalize.
    """
    key_hash: str
    entry_id: int | None = None

    @property
    def is_replay(self) -> bool:
        return self.entry_id is not None


class IdempotencyService:

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = settings or get_settings()
        self.db = db
        self.clock = clock
        self.sleep = sleep
        self.ttl = timedelta(hours=settings.IDEMPOTENCY_TTL_HOURS)
        self.default_scope = settings.IDEMPOTENCY_DEFAULT_SCOPE
        self.pending_timeout = timedelta(
            seconds=settings.IDEMPOTENCY_PENDING_TIMEOUT_SECONDS
        )
        self.poll_attempts = settings.IDEMPOTENCY_POLL_ATTEMPTS
        self.poll_interval = settings.IDEMPOTENCY_POLL_INTERVAL_SECONDS

    def key_hash_for(
        self, idempotency_key: str, scope_token: str | None = None
    ) -> str:
        return derive_key_hash(scope_token or self.default_scope, idempotency_key)

    def claim(self, key_hash: str, request_hash: str) -> IdempotencyClaim:
        """
        Claim key_hash for a request with the given fingerprint.

        Raises ConflictError if the key was used with a different
        payload, or if another attempt still holds it after
        polling.
        """
        for attempt in range(self.poll_attempts + 1):
            record = self._load_live(key_hash)

            if record is None:
                if self._insert_pending(key_hash, request_hash):
                    return IdempotencyClaim(key_hash)
                # Lost the insert to a concurrent attempt; look again
                continue

            if record.request_hash != request_hash:
                logger.warning(
                    "Idempotency key %s reused with a different request body",
                    key_hash[:12],
                )
                raise ConflictError(
                    "Idempotency conflict: request body mismatch for same key"
                )

            if record.entry_id is not None:
                return IdempotencyClaim(key_hash, record.entry_id)

            # Pending. The attempt may have committed without finalizing.
            entry_id = self.committed_entry_for(key_hash)
            if entry_id is not None:
                self.finalize(key_hash, entry_id)
                return IdempotencyClaim(key_hash, entry_id)

            if self._is_stale(record) and self._take_over(record):
                return IdempotencyClaim(key_hash)

            if attempt < self.poll_attempts:
                self.sleep(self.poll_interval)

        raise ConflictError(
            "A request with this idempotency key is still in progress; "
            "retry later",
            {"retryable": True},
        )

    def finalize(self, key_hash: str, entry_id: int) -> bool:
        """
        Point the record at the entry that was committed.

        Returns False when the update fails. The entry is already
        durable and carries the key hash, so the next replay of
        this key recovers the record; the failure is logged.
        """
        try:
            self.db.execute(
                update(IdempotencyKey)
                .where(IdempotencyKey.key_hash == key_hash)
                .values(entry_id=entry_id)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(
                "Entry %s committed but idempotency key %s could not be "
                "finalized; it stays pending until the next replay",
                entry_id,
                key_hash[:12],
                exc_info=True,
            )
            return False
        return True

    def committed_entry_for(self, key_hash: str) -> int | None:
        return self.db.execute(
            select(JournalEntry.id).where(
                JournalEntry.idempotency_key_hash == key_hash
            )
        ).scalar_one_or_none()

    # --- internals ---

    def _load_live(self, key_hash: str) -> IdempotencyKey | None:
        """Load the record, deleting it first if it has expired."""
        record = self.db.execute(
            select(IdempotencyKey)
            .where(IdempotencyKey.key_hash == key_hash)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if record is None or record.expires_at > self.clock():
            return record

        # Only delete the exact record we saw expire
        purged = self.db.execute(
            delete(IdempotencyKey)
            .where(
                IdempotencyKey.key_hash == key_hash,
                IdempotencyKey.expires_at == record.expires_at,
            )
            .execution_options(synchronize_session=False)
        )
        if purged.rowcount == 1:
            # The old entry gives up the key so the next claim can post
            self.db.execute(
                update(JournalEntry)
                .where(JournalEntry.idempotency_key_hash == key_hash)
                .values(idempotency_key_hash=None)
                .execution_options(synchronize_session=False)
            )
        self.db.expunge(record)
        self._commit("purge expired idempotency key")
        logger.info("Purged expired idempotency key %s", key_hash[:12])
        return None

    def _insert_pending(self, key_hash: str, request_hash: str) -> bool:
        now = self.clock()
        self.db.add(IdempotencyKey(
            key_hash=key_hash,
            request_hash=request_hash,
            entry_id=None,
            created_at=now,
            claimed_at=now,
            expires_at=now + self.ttl,
        ))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(
                "Idempotency key %s claimed concurrently; another attempt "
                "is in flight",
                key_hash[:12],
            )
            return False
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError("Failed to record idempotency key") from e
        return True

    def _is_stale(self, record: IdempotencyKey) -> bool:
        return record.claimed_at + self.pending_timeout <= self.clock()

    def _take_over(self, record: IdempotencyKey) -> bool:
        """Compare-and-set the claim time of an abandoned pending record."""
        result = self.db.execute(
            update(IdempotencyKey)
            .where(
                IdempotencyKey.key_hash == record.key_hash,
                IdempotencyKey.entry_id.is_(None),
                IdempotencyKey.claimed_at == record.claimed_at,
            )
            .values(claimed_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        self._commit("take over stale idempotency claim")
        if result.rowcount == 1:
            logger.warning(
                "Took over stale pending idempotency key %s (claimed at %s)",
                record.key_hash[:12],
                record.claimed_at.isoformat(),
            )
            return True
        return False

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to {action}") from e
