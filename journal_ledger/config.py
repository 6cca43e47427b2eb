"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.

Components receive a Settings instance when they are built
instead of reaching for module-level globals, so tests can
hand them a modified copy.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Journal Ledger"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = _env_bool("DEBUG", "false")
    API_PREFIX: str = os.getenv("API_PREFIX", "/api/v1")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/journal_ledger"
    )
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    DB_POOL_TIMEOUT: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))

    # Authentication
    REQUIRE_API_KEY: bool = _env_bool("REQUIRE_API_KEY", "true")
    DEFAULT_API_KEY: str = os.getenv("DEFAULT_API_KEY", "dev-api-key-123")

    # Idempotency
    IDEMPOTENCY_TTL_HOURS: int = int(os.getenv("IDEMPOTENCY_TTL_HOURS", "48"))
    # Callers without an API key share this namespace
    IDEMPOTENCY_DEFAULT_SCOPE: str = os.getenv(
        "IDEMPOTENCY_DEFAULT_SCOPE", "public"
    )
    IDEMPOTENCY_PENDING_TIMEOUT_SECONDS: float = float(
        os.getenv("IDEMPOTENCY_PENDING_TIMEOUT_SECONDS", "30")
    )
    IDEMPOTENCY_POLL_ATTEMPTS: int = int(
        os.getenv("IDEMPOTENCY_POLL_ATTEMPTS", "5")
    )
    IDEMPOTENCY_POLL_INTERVAL_SECONDS: float = float(
        os.getenv("IDEMPOTENCY_POLL_INTERVAL_SECONDS", "0.2")
    )

    # Validation
    REJECT_DUPLICATE_ACCOUNTS: bool = _env_bool(
        "REJECT_DUPLICATE_ACCOUNTS", "true"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls. This avoids reading
    environment variables repeatedly.
    """
    return Settings()
