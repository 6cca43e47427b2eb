"""
Tests for the EntryValidator.

The validator only needs an account directory, so these tests
use an in-memory one and no database.
"""

from datetime import date

import pytest

from journal_ledger.exceptions import ValidationError
from journal_ledger.schemas.journal import JournalEntryCreate
from journal_ledger.services.entry_validator import EntryValidator, NormalizedLine


TODAY = date(2025, 1, 31)


class FakeAccount:
    def __init__(self, account_id):
        self.id = account_id


class FakeDirectory:
    """Codes 1001, 3001, 4001, 5001 map to ids 1..4."""

    def __init__(self):
        self.codes = {"1001": 1, "3001": 2, "4001": 3, "5001": 4}

    def find_by_code(self, code):
        account_id = self.codes.get(code)
        return FakeAccount(account_id) if account_id is not None else None

    def find_missing_ids(self, account_ids):
        return sorted(set(account_ids) - set(self.codes.values()))


def make_validator(**kwargs):
    return EntryValidator(FakeDirectory(), today=lambda: TODAY, **kwargs)


def make_entry(lines, /, **overrides):
    data = {"date": "2025-01-05", "narration": "Cash sale", "lines": lines}
    data.update(overrides)
    return JournalEntryCreate(**data)


SALE = [
    {"account_code": "1001", "debit": 50000},
    {"account_code": "4001", "credit": 50000},
]


class TestNormalization:

    def test_valid_entry_is_normalized(self):
        result = make_validator().validate(make_entry([
            {"account_code": "1001", "debit": 50000},
            {"account_id": 3, "credit_cents": 50000},
        ]))

        assert result.date == date(2025, 1, 5)
        assert result.narration == "Cash sale"
        assert result.lines == (
            NormalizedLine(account_id=1, debit_cents=50000, credit_cents=0),
            NormalizedLine(account_id=3, debit_cents=0, credit_cents=50000),
        )
        assert result.total_cents == 50000
        assert result.reverses_entry_id is None

    def test_line_order_is_preserved(self):
        result = make_validator().validate(make_entry([
            {"account_code": "5001", "debit": 300},
            {"account_code": "4001", "debit": 200},
            {"account_code": "1001", "credit": 500},
        ]))
        assert [line.account_id for line in result.lines] == [4, 3, 1]

    def test_aliases_fill_the_cents_fields(self):
        result = make_validator().validate(make_entry([
            {"account_code": "1001", "debit": 70},
            {"account_code": "4001", "credit_cents": 70},
        ]))
        assert result.lines[0] == NormalizedLine(1, 70, 0)
        assert result.lines[1] == NormalizedLine(3, 0, 70)

    def test_narration_is_trimmed(self):
        result = make_validator().validate(make_entry(SALE, narration="  Sale  "))
        assert result.narration == "Sale"

    def test_entry_dated_today_is_accepted(self):
        result = make_validator().validate(make_entry(SALE, date="2025-01-31"))
        assert result.date == TODAY


class TestRequiredFields:

    @pytest.mark.parametrize("overrides", [
        {"date": None},
        {"date": ""},
        {"narration": None},
        {"narration": "   "},
        {"lines": None},
        {"lines": [{"account_code": "1001", "debit": 100}]},
    ])
    def test_missing_fields_rejected(self, overrides):
        with pytest.raises(ValidationError, match="at least 2 lines"):
            make_validator().validate(make_entry(SALE, **overrides))


class TestDate:

    @pytest.mark.parametrize("value", ["2025-02-30", "05/01/2025", "yesterday", 20250105])
    def test_malformed_date_rejected(self, value):
        with pytest.raises(ValidationError, match="YYYY-MM-DD"):
            make_validator().validate(make_entry(SALE, date=value))

    def test_future_date_rejected(self):
        with pytest.raises(ValidationError, match="in the future"):
            make_validator().validate(make_entry(SALE, date="2025-02-01"))


class TestAccounts:

    def test_unknown_code_rejected(self):
        with pytest.raises(ValidationError, match="unknown account code '9999'"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 100},
                {"account_code": "9999", "credit": 100},
            ]))

    def test_line_without_account_rejected(self):
        with pytest.raises(ValidationError, match="line 2: account_id or account_code"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 100},
                {"credit": 100},
            ]))

    @pytest.mark.parametrize("account_id", ["1", 0, -4, True])
    def test_bad_account_id_rejected(self, account_id):
        with pytest.raises(ValidationError, match="positive integer"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 100},
                {"account_id": account_id, "credit": 100},
            ]))

    def test_missing_ids_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            make_validator().validate(make_entry([
                {"account_id": 99, "debit": 100},
                {"account_id": 98, "credit": 60},
                {"account_id": 1, "credit": 40},
            ]))

        assert exc_info.value.reason == "Invalid account_id(s): 98,99"
        assert exc_info.value.details == {"account_ids": [98, 99]}

    def test_duplicate_account_rejected(self):
        with pytest.raises(ValidationError, match="must only appear once"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 500},
                {"account_code": "1001", "credit": 500},
            ]))

    def test_duplicate_by_code_and_id_rejected(self):
        with pytest.raises(ValidationError, match="must only appear once"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 500},
                {"account_id": 1, "credit": 500},
            ]))

    def test_duplicate_account_allowed_when_switched_off(self):
        result = make_validator(reject_duplicate_accounts=False).validate(
            make_entry([
                {"account_code": "1001", "debit": 500},
                {"account_code": "1001", "credit": 500},
            ])
        )
        assert len(result.lines) == 2


class TestAmounts:

    @pytest.mark.parametrize("line, fields", [
        ({"account_code": "4001", "credit_cents": 100, "credit": 10}, "credit_cents or credit"),
        ({"account_code": "4001", "credit_cents": 100, "credit": 100}, "credit_cents or credit"),
        ({"account_code": "4001", "debit_cents": 0, "debit": 0, "credit": 100}, "debit_cents or debit"),
    ])
    def test_cents_field_and_alias_together_rejected(self, line, fields):
        with pytest.raises(ValidationError, match=f"line 2: send {fields}, not both"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 100},
                line,
            ]))

    @pytest.mark.parametrize("line", [
        {"account_code": "4001", "debit": 100, "credit": 100},
        {"account_code": "4001"},
        {"account_code": "4001", "debit": 0, "credit": 0},
    ])
    def test_exactly_one_side_required(self, line):
        with pytest.raises(ValidationError, match="exactly one of debit or credit"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 100},
                line,
            ]))

    @pytest.mark.parametrize("amount", [-100, 10.5, "100", True])
    def test_non_integer_or_negative_amount_rejected(self, amount):
        with pytest.raises(ValidationError, match="non-negative integers"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 100},
                {"account_code": "4001", "credit": amount},
            ]))

    def test_unbalanced_entry_rejected_with_totals(self):
        with pytest.raises(ValidationError, match="must balance") as exc_info:
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 100},
                {"account_code": "3001", "credit": 99},
            ]))

        assert exc_info.value.details == {"debits": 100, "credits": 99}
        assert "debits=100, credits=99" in exc_info.value.reason


class TestRuleOrder:

    def test_future_date_reported_before_imbalance(self):
        with pytest.raises(ValidationError, match="in the future"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": 100},
                {"account_code": "3001", "credit": 99},
            ], date="2999-01-01"))

    def test_first_bad_line_wins(self):
        with pytest.raises(ValidationError, match="^line 1:"):
            make_validator().validate(make_entry([
                {"account_code": "1001", "debit": -1},
                {"account_code": "9999", "credit": 100},
            ]))

    def test_imbalance_reported_before_missing_ids(self):
        with pytest.raises(ValidationError, match="must balance"):
            make_validator().validate(make_entry([
                {"account_id": 99, "debit": 100},
                {"account_id": 98, "credit": 99},
            ]))


class TestReversedEntry:

    def test_existing_reversed_entry_accepted(self):
        validator = make_validator(entry_exists=lambda entry_id: entry_id == 7)
        result = validator.validate(make_entry(SALE, reverses_entry_id=7))
        assert result.reverses_entry_id == 7

    def test_unknown_reversed_entry_rejected(self):
        validator = make_validator(entry_exists=lambda entry_id: False)
        with pytest.raises(ValidationError, match="does not exist"):
            validator.validate(make_entry(SALE, reverses_entry_id=7))

    def test_malformed_reversed_entry_rejected(self):
        with pytest.raises(ValidationError, match="positive integer"):
            make_validator().validate(make_entry(SALE, reverses_entry_id="seven"))
