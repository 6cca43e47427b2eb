"""
Account service: the chart of accounts.

Creates and lists accounts, and answers the two questions the
posting path asks of it: which account does a reference name,
and which of a set of ids do not exist.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from journal_ledger.exceptions import ConflictError, NotFoundError
from journal_ledger.models.account import Account
from journal_ledger.models.enums import AccountType
from journal_ledger.schemas.account import AccountCreate

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(self, db: Session):
        self.db = db

    def create_account(self, request: AccountCreate) -> Account:
        """
        Create a new account.

        Raises ConflictError if the account code already exists.
        The caller commits.
        """
        existing = self.find_by_code(request.code)
        if existing:
            raise ConflictError(
                f"Account with code '{request.code}' already exists",
                {"code": request.code},
            )

        account = Account(
            code=request.code,
            name=request.name,
            account_type=request.account_type,
        )
        self.db.add(account)
        try:
            self.db.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same code
            self.db.rollback()
            raise ConflictError(
                f"Account with code '{request.code}' already exists",
                {"code": request.code},
            ) from e

        logger.info("Created account %s (%s)", account.code, account.account_type.value)
        return account

    def get_account(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise NotFoundError(
                f"Account {account_id} not found", {"account_id": account_id}
            )
        return account

    def list_accounts(self, account_type: AccountType | None = None) -> list[Account]:
        """All accounts ordered by code, optionally of one type."""
        query = select(Account).order_by(Account.code.asc())
        if account_type is not None:
            query = query.where(Account.account_type == account_type)
        return list(self.db.execute(query).scalars().all())

    def find_by_code(self, code: str) -> Account | None:
        return self.db.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()

    def resolve_reference(self, reference: str) -> Account:
        """
        Resolve an account reference from a URL.

        Codes win over ids: "1001" is first looked up as a code
        and only then, if it is numeric, as an id.
        """
        account = self.find_by_code(reference)
        if account is None and reference.isdigit():
            account = self.db.get(Account, int(reference))
        if account is None:
            raise NotFoundError(
                f"Account '{reference}' not found", {"reference": reference}
            )
        return account

    def find_missing_ids(self, account_ids: set[int]) -> list[int]:
        """Return the ids in account_ids that have no account, sorted."""
        if not account_ids:
            return []
        found = self.db.execute(
            select(Account.id).where(Account.id.in_(account_ids))
        ).scalars().all()
        return sorted(account_ids - set(found))
