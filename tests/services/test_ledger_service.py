"""
Tests for the LedgerService: balances, trial balance and
entry lookups.

The fixture below posts the worked example used throughout:

    2025-01-01  Owner investment   Dr Cash 100000 / Cr Capital 100000
    2025-01-05  Cash sale          Dr Cash  50000 / Cr Sales    50000
    2025-01-10  Rent paid          Dr Rent  20000 / Cr Cash     20000
"""

from datetime import date

import pytest

from journal_ledger.exceptions import NotFoundError, ValidationError
from journal_ledger.models.enums import AccountType
from journal_ledger.schemas.account import AccountCreate
from journal_ledger.services.account_service import AccountService
from journal_ledger.services.entry_validator import NormalizedEntry, NormalizedLine
from journal_ledger.services.ledger_service import LedgerService
from journal_ledger.services.posting_service import PostingService


CHART = [
    ("1001", "Cash", AccountType.ASSET),
    ("2001", "Loans", AccountType.LIABILITY),
    ("3001", "Capital", AccountType.EQUITY),
    ("4001", "Sales", AccountType.REVENUE),
    ("5001", "Rent", AccountType.EXPENSE),
]


def post(db_session, day, narration, lines, reverses_entry_id=None):
    """lines: (account, debit, credit) tuples."""
    return PostingService(db_session).post(NormalizedEntry(
        date=day,
        narration=narration,
        lines=tuple(
            NormalizedLine(account.id, debit, credit)
            for account, debit, credit in lines
        ),
        reverses_entry_id=reverses_entry_id,
        total_cents=sum(debit for _, debit, _ in lines),
    ))


@pytest.fixture
def chart(db_session):
    service = AccountService(db_session)
    accounts = {
        code: service.create_account(AccountCreate(
            code=code, name=name, account_type=account_type,
        ))
        for code, name, account_type in CHART
    }
    db_session.commit()
    return accounts


@pytest.fixture
def january(db_session, chart):
    cash, capital = chart["1001"], chart["3001"]
    sales, rent = chart["4001"], chart["5001"]
    return [
        post(db_session, date(2025, 1, 1), "Owner investment",
             [(cash, 100000, 0), (capital, 0, 100000)]),
        post(db_session, date(2025, 1, 5), "Cash sale",
             [(cash, 50000, 0), (sales, 0, 50000)]),
        post(db_session, date(2025, 1, 10), "Rent paid",
             [(rent, 20000, 0), (cash, 0, 20000)]),
    ]


class TestAccountBalance:

    def test_balance_is_debits_minus_credits(self, db_session, chart, january):
        ledger = LedgerService(db_session)

        cash = ledger.get_account_balance(chart["1001"], date(2025, 1, 31))
        assert cash.debits == 150000
        assert cash.credits == 20000
        assert cash.balance == 130000

        # Credit-natured accounts come out negative
        assert ledger.get_account_balance(chart["4001"]).balance == -50000
        assert ledger.get_account_balance(chart["3001"]).balance == -100000

    def test_as_of_excludes_later_entries(self, db_session, chart, january):
        ledger = LedgerService(db_session)

        assert ledger.get_account_balance(chart["1001"], date(2025, 1, 4)).balance == 100000
        assert ledger.get_account_balance(chart["1001"], date(2024, 12, 31)).balance == 0

    def test_as_of_day_is_inclusive(self, db_session, chart, january):
        balance = LedgerService(db_session).get_account_balance(
            chart["1001"], date(2025, 1, 10)
        )
        assert balance.balance == 130000

    def test_account_without_lines_is_zero(self, db_session, chart):
        balance = LedgerService(db_session).get_account_balance(chart["2001"])
        assert (balance.debits, balance.credits, balance.balance) == (0, 0, 0)


class TestTrialBalance:

    def test_january_trial_balance(self, db_session, chart, january):
        report = LedgerService(db_session).trial_balance(
            date(2025, 1, 1), date(2025, 1, 31)
        )
        rows = {line.code: line for line in report.lines}

        assert [line.code for line in report.lines] == [
            "1001", "2001", "3001", "4001", "5001",
        ]
        assert rows["1001"].balance == 130000
        assert rows["4001"].balance == -50000
        assert rows["5001"].balance == 20000
        assert report.total_debits == 170000
        assert report.total_credits == 170000
        assert report.is_balanced

    def test_idle_accounts_listed_with_zeros(self, db_session, chart, january):
        report = LedgerService(db_session).trial_balance(
            date(2025, 1, 1), date(2025, 1, 31)
        )
        loans = next(line for line in report.lines if line.code == "2001")
        assert (loans.debits, loans.credits, loans.balance) == (0, 0, 0)

    def test_accounts_active_only_outside_range_still_listed(
        self, db_session, chart, january
    ):
        post(db_session, date(2025, 2, 3), "February loan",
             [(chart["1001"], 5000, 0), (chart["2001"], 0, 5000)])

        report = LedgerService(db_session).trial_balance(
            date(2025, 1, 6), date(2025, 1, 31)
        )
        rows = {line.code: line for line in report.lines}

        assert len(rows) == 5
        assert rows["2001"].credits == 0
        assert rows["4001"].credits == 0
        assert rows["1001"].credits == 20000
        assert rows["1001"].debits == 0
        assert report.is_balanced

    def test_single_day_range(self, db_session, chart, january):
        report = LedgerService(db_session).trial_balance(
            date(2025, 1, 5), date(2025, 1, 5)
        )
        assert report.total_debits == 50000
        assert report.is_balanced

    def test_from_after_to_rejected(self, db_session, chart):
        with pytest.raises(ValidationError, match="from must not be after to"):
            LedgerService(db_session).trial_balance(
                date(2025, 2, 1), date(2025, 1, 1)
            )


class TestEntryLookups:

    def test_get_entry_returns_ordered_annotated_lines(
        self, db_session, chart, january
    ):
        entry = LedgerService(db_session).get_entry(january[2].id)

        assert entry.narration == "Rent paid"
        assert [line.line_index for line in entry.lines] == [1, 2]
        assert [line.account_code for line in entry.lines] == ["5001", "1001"]
        assert entry.lines[0].account_name == "Rent"

    def test_get_entry_not_found(self, db_session):
        with pytest.raises(NotFoundError, match="Journal entry 42 not found"):
            LedgerService(db_session).get_entry(42)

    def test_entry_exists(self, db_session, chart, january):
        ledger = LedgerService(db_session)
        assert ledger.entry_exists(january[0].id)
        assert not ledger.entry_exists(999)

    def test_find_reversal_of(self, db_session, chart, january):
        sale = january[1]
        ledger = LedgerService(db_session)
        assert ledger.find_reversal_of(sale.id) is None

        reversal = post(
            db_session, date(2025, 1, 20), "Reversal of entry",
            [(chart["4001"], 50000, 0), (chart["1001"], 0, 50000)],
            reverses_entry_id=sale.id,
        )
        assert ledger.find_reversal_of(sale.id).id == reversal.id
