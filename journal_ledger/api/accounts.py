"""
Account API endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from journal_ledger.api.security import require_api_key
from journal_ledger.models.base import get_db
from journal_ledger.models.enums import AccountType
from journal_ledger.services.account_service import AccountService
from journal_ledger.services.ledger_service import LedgerService
from journal_ledger.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountSummary,
    AccountBalanceResponse,
)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    account_type: AccountType | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
):
    """List accounts ordered by code, optionally filtered by type."""
    return AccountService(db).list_accounts(account_type)


@router.post(
    "",
    response_model=AccountResponse,
    status_code=201,
    dependencies=[Depends(require_api_key)],
)
def create_account(
    request: AccountCreate,
    db: Session = Depends(get_db),
):
    """
    Create a new account.

    Every account must exist before entries can be posted to
    it. A duplicate code returns 409.
    """
    account = AccountService(db).create_account(request)
    db.commit()
    return account


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    """Get account details."""
    return AccountService(db).get_account(account_id)


@router.get("/{reference}/balance", response_model=AccountBalanceResponse)
def get_account_balance(
    reference: str,
    as_of: date | None = None,
    db: Session = Depends(get_db),
):
    """
    Balance of an account, referenced by code or id.

    With as_of, only entries dated on or before that day count.
    """
    account = AccountService(db).resolve_reference(reference)
    result = LedgerService(db).get_account_balance(account, as_of)

    return AccountBalanceResponse(
        account=AccountSummary(
            code=account.code,
            name=account.name,
            type=account.account_type,
        ),
        as_of=as_of,
        debits=result.debits,
        credits=result.credits,
        balance=result.balance,
    )
