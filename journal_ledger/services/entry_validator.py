"""
Entry validator: turns a submitted journal entry into a
normalized one, or rejects it.

Rules are evaluated in a fixed order and the first violation
wins:

1. date, narration and at least 2 lines are present
2. date is a YYYY-MM-DD calendar date, not after today
3. every line references an account (known code or positive id)
4. no account appears twice in the entry (configurable)
5. amounts use one field per side (cents or alias), are non-negative
   integers, exactly one side positive
6. total debits equal total credits
7. every referenced account id exists (reported as one batch)
8. a reversed entry, if named, exists

The validator writes nothing. Its only side effects are the
read-only lookups made through the account directory.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Protocol

from journal_ledger.exceptions import ValidationError
from journal_ledger.models.account import Account
from journal_ledger.schemas.journal import JournalEntryCreate, JournalLineCreate


class AccountDirectory(Protocol):
    """What the validator needs to know about accounts."""

    def find_by_code(self, code: str) -> Account | None: ...

    def find_missing_ids(self, account_ids: set[int]) -> list[int]: ...


@dataclass(frozen=True)
class NormalizedLine:
    account_id: int
    debit_cents: int
    credit_cents: int


@dataclass(frozen=True)
class NormalizedEntry:
    """A validated entry, ready for the posting transaction."""
    date: date
    narration: str
    lines: tuple[NormalizedLine, ...]
    reverses_entry_id: int | None
    total_cents: int


def _is_whole_number(value: Any) -> bool:
    # bool is a subclass of int; true/false are not amounts
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


class EntryValidator:

    def __init__(
        self,
        directory: AccountDirectory,
        entry_exists: Callable[[int], bool] | None = None,
        reject_duplicate_accounts: bool = True,
        today: Callable[[], date] = date.today,
    ):
        self.directory = directory
        self.entry_exists = entry_exists
        self.reject_duplicate_accounts = reject_duplicate_accounts
        self.today = today

    def validate(self, payload: JournalEntryCreate) -> NormalizedEntry:
        """Validate payload and return the normalized entry.

        Raises ValidationError naming the first rule that failed.
        """
        if (
            payload.date in (None, "")
            or not (payload.narration or "").strip()
            or payload.lines is None
            or len(payload.lines) < 2
        ):
            raise ValidationError(
                "date, narration and at least 2 lines are required"
            )

        entry_date = _parse_date(payload.date)
        if entry_date is None:
            raise ValidationError(
                "date must be a calendar date in YYYY-MM-DD format",
                {"date": str(payload.date)},
            )
        today = self.today()
        if entry_date > today:
            raise ValidationError(
                f"date {entry_date.isoformat()} is in the future",
                {"date": entry_date.isoformat(), "today": today.isoformat()},
            )

        lines: list[NormalizedLine] = []
        seen_accounts: set[int] = set()
        total_debits = 0
        total_credits = 0

        for position, line in enumerate(payload.lines, start=1):
            account_id = self._resolve_account(position, line)

            if self.reject_duplicate_accounts and account_id in seen_accounts:
                raise ValidationError(
                    f"line {position}: account "
                    f"{line.account_code or account_id} must only appear "
                    f"once per entry",
                    {"line": position, "account_id": account_id},
                )
            seen_accounts.add(account_id)

            debit, credit = self._amounts(position, line)
            total_debits += debit
            total_credits += credit
            lines.append(NormalizedLine(account_id, debit, credit))

        if total_debits != total_credits:
            raise ValidationError(
                f"Debits and credits must balance "
                f"(debits={total_debits}, credits={total_credits})",
                {"debits": total_debits, "credits": total_credits},
            )

        missing = self.directory.find_missing_ids(
            {line.account_id for line in lines}
        )
        if missing:
            raise ValidationError(
                f"Invalid account_id(s): {','.join(str(i) for i in missing)}",
                {"account_ids": missing},
            )

        reverses_entry_id = self._reversed_entry(payload.reverses_entry_id)

        return NormalizedEntry(
            date=entry_date,
            narration=payload.narration.strip(),
            lines=tuple(lines),
            reverses_entry_id=reverses_entry_id,
            total_cents=total_debits,
        )

    def _resolve_account(self, position: int, line: JournalLineCreate) -> int:
        if line.account_code:
            account = self.directory.find_by_code(line.account_code)
            if account is None:
                raise ValidationError(
                    f"line {position}: unknown account code "
                    f"'{line.account_code}'",
                    {"line": position, "account_code": line.account_code},
                )
            return account.id

        if line.account_id is None:
            raise ValidationError(
                f"line {position}: account_id or account_code is required",
                {"line": position},
            )
        if not _is_whole_number(line.account_id) or line.account_id <= 0:
            raise ValidationError(
                f"line {position}: account_id must be a positive integer",
                {"line": position, "account_id": line.account_id},
            )
        return line.account_id

    def _amounts(self, position: int, line: JournalLineCreate) -> tuple[int, int]:
        for field, alias in (("debit_cents", "debit"), ("credit_cents", "credit")):
            if getattr(line, field) is not None and getattr(line, alias) is not None:
                raise ValidationError(
                    f"line {position}: send {field} or {alias}, not both",
                    {"line": position},
                )

        debit = line.debit_cents if line.debit_cents is not None else line.debit
        credit = line.credit_cents if line.credit_cents is not None else line.credit
        debit = 0 if debit is None else debit
        credit = 0 if credit is None else credit

        for amount in (debit, credit):
            if not _is_whole_number(amount) or amount < 0:
                raise ValidationError(
                    f"line {position}: amounts must be non-negative "
                    f"integers in minor units",
                    {"line": position, "debit": debit, "credit": credit},
                )

        if (debit > 0) == (credit > 0):
            raise ValidationError(
                f"line {position}: exactly one of debit or credit must "
                f"be positive",
                {"line": position, "debit": debit, "credit": credit},
            )
        return debit, credit

    def _reversed_entry(self, value: Any) -> int | None:
        if value is None:
            return None
        if not _is_whole_number(value) or value <= 0:
            raise ValidationError(
                "reverses_entry_id must be a positive integer",
                {"reverses_entry_id": value},
            )
        if self.entry_exists is not None and not self.entry_exists(value):
            raise ValidationError(
                f"reverses_entry_id {value} does not exist",
                {"reverses_entry_id": value},
            )
        return value
