"""
Journal entry model.

An entry is the header of one balanced posting. Its lines
are created with it in the same transaction and neither the
header nor the lines are modified afterwards.
"""

import datetime

from sqlalchemy import String, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from journal_ledger.models.base import Base, utcnow


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    narration: Mapped[str] = mapped_column(Text, nullable=False)
    posted_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    reverses_entry_id: Mapped[int | None] = mapped_column(
        ForeignKey("journal_entries.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Key hash of the idempotent request that created this entry.
    # Unique, so two attempts sharing a key can never both commit.
    # Cleared when the key's idempotency record expires and is purged.
    idempotency_key_hash: Mapped[str | None] = mapped_column(
        String(64), unique=True, nullable=True
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        order_by="JournalLine.line_index",
        cascade="all, delete-orphan",
    )
    reverses_entry: Mapped["JournalEntry | None"] = relationship(
        remote_side=[id]
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.id} {self.date} ({len(self.lines)} lines)>"
