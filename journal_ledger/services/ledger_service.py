"""
Ledger service: read side of the ledger.

Balances are never stored. They are always derived from the
posted lines, so they are correct as long as the lines are.

Sign convention is uniform for every account type:

    balance = sum(debit_cents) - sum(credit_cents)

Positive means a net debit position (natural for Asset and
Expense accounts), negative a net credit position (natural for
Liability, Equity and Revenue). Callers interpret the sign.
"""

from dataclasses import dataclass
from datetime import date

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from journal_ledger.exceptions import NotFoundError, ValidationError
from journal_ledger.models.account import Account
from journal_ledger.models.journal_entry import JournalEntry
from journal_ledger.models.journal_line import JournalLine


@dataclass(frozen=True)
class AccountBalance:
    account: Account
    as_of: date | None
    debits: int
    credits: int

    @property
    def balance(self) -> int:
        return self.debits - self.credits


@dataclass(frozen=True)
class TrialBalanceLine:
    code: str
    name: str
    debits: int
    credits: int

    @property
    def balance(self) -> int:
        return self.debits - self.credits


@dataclass(frozen=True)
class TrialBalance:
    date_from: date
    date_to: date
    lines: list[TrialBalanceLine]

    @property
    def total_debits(self) -> int:
        return sum(line.debits for line in self.lines)

    @property
    def total_credits(self) -> int:
        return sum(line.credits for line in self.lines)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class LedgerService:

    def __init__(self, db: Session):
        self.db = db

    def get_entry(self, entry_id: int) -> JournalEntry:
        """Return an entry with its lines (ordered) and their accounts."""
        entry = self.db.execute(
            select(JournalEntry)
            .where(JournalEntry.id == entry_id)
            .options(
                selectinload(JournalEntry.lines).selectinload(JournalLine.account)
            )
        ).scalar_one_or_none()

        if not entry:
            raise NotFoundError(
                f"Journal entry {entry_id} not found", {"entry_id": entry_id}
            )
        return entry

    def entry_exists(self, entry_id: int) -> bool:
        return self.db.execute(
            select(JournalEntry.id).where(JournalEntry.id == entry_id)
        ).scalar_one_or_none() is not None

    def find_reversal_of(self, entry_id: int) -> JournalEntry | None:
        """The entry that reverses entry_id, if one was posted."""
        return self.db.execute(
            select(JournalEntry)
            .where(JournalEntry.reverses_entry_id == entry_id)
            .order_by(JournalEntry.id.asc())
            .limit(1)
        ).scalar_one_or_none()

    def get_account_balance(
        self, account: Account, as_of: date | None = None
    ) -> AccountBalance:
        """
        Sum an account's lines, optionally only those of entries
        dated on or before as_of.
        """
        query = (
            select(
                func.coalesce(func.sum(JournalLine.debit_cents), 0),
                func.coalesce(func.sum(JournalLine.credit_cents), 0),
            )
            .select_from(JournalLine)
            .join(JournalEntry, JournalEntry.id == JournalLine.entry_id)
            .where(JournalLine.account_id == account.id)
        )
        if as_of is not None:
            query = query.where(JournalEntry.date <= as_of)

        debits, credits = self.db.execute(query).one()
        # Postgres returns NUMERIC for SUM(BIGINT)
        return AccountBalance(
            account=account,
            as_of=as_of,
            debits=int(debits),
            credits=int(credits),
        )

    def trial_balance(self, date_from: date, date_to: date) -> TrialBalance:
        """
        Debit and credit activity per account for [date_from, date_to].

        Every account appears, including those without activity
        in the range: the per-account sums are left-outer-joined
        onto the full account list.
        """
        if date_from > date_to:
            raise ValidationError(
                "from must not be after to",
                {"from": date_from.isoformat(), "to": date_to.isoformat()},
            )

        activity = (
            select(
                JournalLine.account_id.label("account_id"),
                func.sum(JournalLine.debit_cents).label("debits"),
                func.sum(JournalLine.credit_cents).label("credits"),
            )
            .join(JournalEntry, JournalEntry.id == JournalLine.entry_id)
            .where(JournalEntry.date.between(date_from, date_to))
            .group_by(JournalLine.account_id)
            .subquery()
        )

        rows = self.db.execute(
            select(
                Account.code,
                Account.name,
                func.coalesce(activity.c.debits, 0),
                func.coalesce(activity.c.credits, 0),
            )
            .select_from(Account)
            .outerjoin(activity, activity.c.account_id == Account.id)
            .order_by(Account.code.asc())
        ).all()

        return TrialBalance(
            date_from=date_from,
            date_to=date_to,
            lines=[
                TrialBalanceLine(
                    code=code,
                    name=name,
                    debits=int(debits),
                    credits=int(credits),
                )
                for code, name, debits, credits in rows
            ],
        )
