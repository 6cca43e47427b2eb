"""
API key authentication dependency for write endpoints.
"""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from journal_ledger.config import Settings, get_settings
from journal_ledger.exceptions import AuthenticationError
from journal_ledger.models.base import get_db
from journal_ledger.services.security_service import SecurityService


def require_api_key(
    x_api_key: str | None = Header(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> str | None:
    """
    Check the x-api-key header and return the raw key.

    The key doubles as the caller's idempotency scope. When
    authentication is switched off the header is optional and
    None means the shared default scope.
    """
    if not settings.REQUIRE_API_KEY:
        return x_api_key

    if not x_api_key:
        raise AuthenticationError("API key required")

    if SecurityService(db).authenticate(x_api_key) is None:
        raise AuthenticationError("Invalid API key")

    return x_api_key
