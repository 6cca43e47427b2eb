"""
Pydantic schemas for account operations.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from journal_ledger.models.enums import AccountType


# --- Request Schemas ---

class AccountCreate(BaseModel):
    """Request to create a new account in the chart of accounts."""
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=255)
    account_type: AccountType = Field(alias="type")

    model_config = {"populate_by_name": True}


# --- Response Schemas ---

class AccountResponse(BaseModel):
    id: int
    code: str
    name: str
    account_type: AccountType
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccountSummary(BaseModel):
    """The account fields shown alongside a balance."""
    code: str
    name: str
    type: AccountType


class AccountBalanceResponse(BaseModel):
    """
    Balance of one account.

    balance = debits - credits. Positive is a net debit
    position, negative a net credit position.
    """
    account: AccountSummary
    as_of: date | None
    debits: int
    credits: int
    balance: int
