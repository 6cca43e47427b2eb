"""
Journal API endpoints.

The API layer is thin. It handles headers and status codes
and delegates all business logic to the JournalService.
Errors raised by the services are turned into responses
by journal_ledger.api.errors.
"""

from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.orm import Session

from journal_ledger.api.security import require_api_key
from journal_ledger.config import Settings, get_settings
from journal_ledger.models.base import get_db
from journal_ledger.services.journal_service import JournalService, PostingResult
from journal_ledger.services.ledger_service import LedgerService
from journal_ledger.schemas.journal import (
    JournalEntryCreate,
    JournalEntryResponse,
    ReverseEntryRequest,
)

router = APIRouter(prefix="/journal", tags=["Journal"])

REPLAY_HEADER = "Idempotent-Replayed"


def _respond(result: PostingResult, response: Response):
    if result.replayed:
        response.status_code = 200
        response.headers[REPLAY_HEADER] = "true"
    return result.entry


@router.post(
    "/journal-entries",
    response_model=JournalEntryResponse,
    status_code=201,
)
def create_journal_entry(
    payload: JournalEntryCreate,
    response: Response,
    idempotency_key: str | None = Header(default=None),
    api_key: str | None = Depends(require_api_key),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Post a balanced journal entry.

    Returns 201 with the new entry. If the Idempotency-Key
    header repeats an earlier completed request with the same
    body, the earlier entry is returned with 200 instead.
    """
    service = JournalService(db, settings)
    result = service.create_entry(
        payload, idempotency_key=idempotency_key, scope_token=api_key
    )
    return _respond(result, response)


@router.get("/journal-entries/{entry_id}", response_model=JournalEntryResponse)
def get_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
):
    """Get an entry with its lines in posting order."""
    return LedgerService(db).get_entry(entry_id)


@router.post(
    "/journal-entries/{entry_id}/reverse",
    response_model=JournalEntryResponse,
    status_code=201,
)
def reverse_journal_entry(
    entry_id: int,
    response: Response,
    request: ReverseEntryRequest | None = None,
    idempotency_key: str | None = Header(default=None),
    api_key: str | None = Depends(require_api_key),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Reverse an entry by posting its mirror image.

    The original is left untouched; the new entry points back
    to it through reverses_entry_id.
    """
    service = JournalService(db, settings)
    result = service.reverse_entry(
        entry_id,
        request,
        idempotency_key=idempotency_key,
        scope_token=api_key,
    )
    return _respond(result, response)
