"""
Journal line model.

Each line moves exactly one side of one account. Amounts are
integer minor units (cents), never floating point. The check
constraint repeats the validator's exactly-one-side rule at
the database level.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger, SmallInteger, DateTime, ForeignKey,
    CheckConstraint, UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from journal_ledger.models.base import Base, utcnow


class JournalLine(Base):
    __tablename__ = "journal_lines"
    __table_args__ = (
        CheckConstraint(
            "(debit_cents > 0 AND credit_cents = 0) OR "
            "(credit_cents > 0 AND debit_cents = 0)",
            name="chk_journal_lines_amounts",
        ),
        CheckConstraint("line_index > 0", name="chk_journal_lines_index"),
        UniqueConstraint(
            "entry_id", "line_index", name="uq_journal_lines_entry_index"
        ),
        Index("idx_journal_lines_account_entry", "account_id", "entry_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    entry_id: Mapped[int] = mapped_column(
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    debit_cents: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    credit_cents: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    line_index: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")
    account: Mapped["Account"] = relationship(back_populates="lines")

    # Display annotations read by the response schema
    @property
    def account_code(self) -> str:
        return self.account.code

    @property
    def account_name(self) -> str:
        return self.account.name

    def __repr__(self) -> str:
        side = "Dr" if self.debit_cents else "Cr"
        amount = self.debit_cents or self.credit_cents
        return f"<JournalLine {self.line_index} {side} {amount}>"
