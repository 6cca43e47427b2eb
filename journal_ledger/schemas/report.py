"""
Pydantic schemas for ledger reports.
"""

from datetime import date

from pydantic import BaseModel, Field


class TrialBalanceRow(BaseModel):
    code: str
    name: str
    debits: int
    credits: int
    balance: int


class TrialBalanceTotals(BaseModel):
    debits: int
    credits: int


class TrialBalanceResponse(BaseModel):
    """
    Per-account activity for a closed date range.

    totals.debits always equals totals.credits because every
    posted entry balances.
    """
    date_from: date = Field(serialization_alias="from")
    date_to: date = Field(serialization_alias="to")
    accounts: list[TrialBalanceRow]
    totals: TrialBalanceTotals
