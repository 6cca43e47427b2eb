"""
Pydantic schemas for journal entries.

The request schemas are deliberately loose: field presence,
amount shape and balance are checked by the EntryValidator so
that every rule fails with its own reason and a 400, in a
fixed order. Pydantic only guarantees the JSON structure.
"""

import datetime
from typing import Any

from pydantic import BaseModel, Field


# --- Request Schemas ---

class JournalLineCreate(BaseModel):
    """
    One proposed line.

    The account is referenced by account_id or account_code.
    Amounts are integer minor units; debit/credit are accepted
    as aliases of debit_cents/credit_cents, never both on one line.
    """
    account_id: Any = None
    account_code: str | None = None
    debit_cents: Any = None
    credit_cents: Any = None
    debit: Any = None
    credit: Any = None


class JournalEntryCreate(BaseModel):
    """A proposed journal entry as submitted by the client."""
    date: Any = None
    narration: str | None = None
    lines: list[JournalLineCreate] | None = None
    reverses_entry_id: Any = None

    def fingerprint_payload(self) -> dict:
        """The submitted fields only, in JSON form, for request hashing."""
        return self.model_dump(mode="json", exclude_unset=True)


class ReverseEntryRequest(BaseModel):
    """Optional overrides for a reversal entry."""
    date: Any = None
    narration: str | None = Field(default=None, max_length=10_000)


# --- Response Schemas ---

class JournalLineResponse(BaseModel):
    line_index: int
    account_id: int
    account_code: str
    account_name: str
    debit_cents: int
    credit_cents: int

    model_config = {"from_attributes": True}


class JournalEntryResponse(BaseModel):
    id: int
    date: datetime.date
    narration: str
    posted_at: datetime.datetime
    reverses_entry_id: int | None
    lines: list[JournalLineResponse]

    model_config = {"from_attributes": True}
