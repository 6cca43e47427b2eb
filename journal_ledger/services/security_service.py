"""
Security service: API key lookup.

Keys are stored as sha256 hashes; a presented key is hashed
and matched against the active keys.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from journal_ledger.models.api_key import ApiKey
from journal_ledger.models.base import utcnow
from journal_ledger.utils.hashing import sha256_hex

logger = logging.getLogger(__name__)


class SecurityService:

    def __init__(self, db: Session):
        self.db = db

    def authenticate(self, raw_key: str) -> ApiKey | None:
        """Return the active key matching raw_key, or None."""
        api_key = self.db.execute(
            select(ApiKey).where(
                ApiKey.key_hash == sha256_hex(raw_key),
                ApiKey.is_active.is_(True),
            )
        ).scalar_one_or_none()

        if api_key is None:
            return None

        api_key.last_used_at = utcnow()
        try:
            self.db.commit()
        except SQLAlchemyError:
            # Usage tracking must not block an authenticated request
            self.db.rollback()
            logger.warning(
                "Could not record last use of API key %s", api_key.name,
                exc_info=True,
            )
        return api_key

    def ensure_api_key(self, raw_key: str, name: str = "default-dev-key") -> ApiKey:
        """Create or re-activate the key. The caller commits."""
        key_hash = sha256_hex(raw_key)
        api_key = self.db.execute(
            select(ApiKey).where(ApiKey.key_hash == key_hash)
        ).scalar_one_or_none()

        if api_key is None:
            api_key = ApiKey(key_hash=key_hash, name=name, is_active=True)
            self.db.add(api_key)
        else:
            api_key.name = name
            api_key.is_active = True

        self.db.flush()
        return api_key
