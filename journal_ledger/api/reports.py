"""
Report API endpoints.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from journal_ledger.models.base import get_db
from journal_ledger.services.ledger_service import LedgerService
from journal_ledger.schemas.report import (
    TrialBalanceResponse,
    TrialBalanceRow,
    TrialBalanceTotals,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/trial-balance", response_model=TrialBalanceResponse)
def get_trial_balance(
    date_from: date = Query(alias="from"),
    date_to: date = Query(alias="to"),
    db: Session = Depends(get_db),
):
    """
    Trial balance for a closed date range.

    Both from and to are required. Accounts without activity in
    the range are listed with zero sums.
    """
    report = LedgerService(db).trial_balance(date_from, date_to)

    return TrialBalanceResponse(
        date_from=report.date_from,
        date_to=report.date_to,
        accounts=[
            TrialBalanceRow(
                code=line.code,
                name=line.name,
                debits=line.debits,
                credits=line.credits,
                balance=line.balance,
            )
            for line in report.lines
        ],
        totals=TrialBalanceTotals(
            debits=report.total_debits,
            credits=report.total_credits,
        ),
    )
