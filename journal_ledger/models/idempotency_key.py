"""
Idempotency record model.

One row per caller-scoped idempotency key. The primary key
on key_hash is what makes claiming a key an atomic
insert-if-absent: a second concurrent insert fails with an
IntegrityError instead of creating another slot.

entry_id stays NULL while the posting is in flight, or if
the attempt never completed.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from journal_ledger.models.base import Base, utcnow


class IdempotencyKey(Base):
    __tablename__ = "idempotency_keys"

    key_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    request_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    # When the current attempt took the slot; a stale pending claim
    # can be taken over by a retry.
    claimed_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )

    @property
    def is_pending(self) -> bool:
        return self.entry_id is None

    def __repr__(self) -> str:
        state = "pending" if self.is_pending else f"entry={self.entry_id}"
        return f"<IdempotencyKey {self.key_hash[:12]} ({state})>"
