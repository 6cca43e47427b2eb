#!/usr/bin/env python3
"""
Seed a small demo chart of accounts and three January entries.

Accounts that already exist are left alone. The entries are only
posted into an empty journal, so running the script twice does
not double the balances.

Run the migrations first (alembic upgrade head).

Usage:
    python scripts/seed_scenario.py
"""

import logging
import sys

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from journal_ledger.config import Settings, get_settings
from journal_ledger.exceptions import LedgerError
from journal_ledger.logging_config import configure_logging
from journal_ledger.models.base import create_db_engine, create_session_factory
from journal_ledger.models.enums import AccountType
from journal_ledger.models.journal_entry import JournalEntry
from journal_ledger.schemas.account import AccountCreate
from journal_ledger.schemas.journal import JournalEntryCreate
from journal_ledger.services.account_service import AccountService
from journal_ledger.services.journal_service import JournalService

logger = logging.getLogger(__name__)

ACCOUNTS = [
    ("1001", "Cash", AccountType.ASSET),
    ("1002", "Bank", AccountType.ASSET),
    ("3001", "Capital", AccountType.EQUITY),
    ("4001", "Sales", AccountType.REVENUE),
    ("5001", "Rent", AccountType.EXPENSE),
]

# (date, narration, debit account, credit account, cents)
ENTRIES = [
    ("2025-01-01", "Seed capital", "1001", "3001", 100000),
    ("2025-01-05", "Cash sale", "1001", "4001", 50000),
    ("2025-01-07", "Office rent", "5001", "1001", 20000),
]


def seed_scenario(db: Session, settings: Settings | None = None) -> dict:
    """Create the demo accounts and entries. Returns what was created."""
    accounts = AccountService(db)
    created_accounts = []
    for code, name, account_type in ACCOUNTS:
        if accounts.find_by_code(code) is None:
            accounts.create_account(AccountCreate(
                code=code, name=name, account_type=account_type,
            ))
            created_accounts.append(code)
    db.commit()

    posted = []
    existing = db.execute(
        select(func.count()).select_from(JournalEntry)
    ).scalar_one()
    if existing:
        logger.info("Journal already has %d entries, not posting", existing)
    else:
        journal = JournalService(db, settings)
        for day, narration, debit_code, credit_code, cents in ENTRIES:
            result = journal.create_entry(JournalEntryCreate(
                date=day,
                narration=narration,
                lines=[
                    {"account_code": debit_code, "debit_cents": cents},
                    {"account_code": credit_code, "credit_cents": cents},
                ],
            ))
            posted.append(result.entry.id)
            logger.info("Posted entry %s: %s", result.entry.id, narration)

    return {"accounts": created_accounts, "entries": posted}


def main() -> int:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    engine = create_db_engine(settings)
    session = create_session_factory(engine)()
    try:
        created = seed_scenario(session, settings)
    except (SQLAlchemyError, LedgerError):
        session.rollback()
        logger.exception("Seeding failed")
        return 1
    finally:
        session.close()
        engine.dispose()

    logger.info(
        "Seed complete: %d accounts, %d entries created",
        len(created["accounts"]), len(created["entries"]),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
