"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Tables are created before each test and
dropped after it, so no test data persists.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from journal_ledger.config import Settings, get_settings
from journal_ledger.main import app
from journal_ledger.models.base import Base, get_db
from journal_ledger.services.security_service import SecurityService


# SQLite for tests, no external database needed.
TEST_DATABASE_URL = "sqlite:///./test.db"
TEST_API_KEY = "test-api-key"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings():
    """Settings for tests: SQLite, API keys on, no idempotency polling."""
    test_settings = Settings()
    test_settings.DATABASE_URL = TEST_DATABASE_URL
    test_settings.REQUIRE_API_KEY = True
    test_settings.IDEMPOTENCY_TTL_HOURS = 48
    test_settings.IDEMPOTENCY_DEFAULT_SCOPE = "public"
    test_settings.IDEMPOTENCY_PENDING_TIMEOUT_SECONDS = 30
    test_settings.IDEMPOTENCY_POLL_ATTEMPTS = 0
    test_settings.IDEMPOTENCY_POLL_INTERVAL_SECONDS = 0
    test_settings.REJECT_DUPLICATE_ACCOUNTS = True
    return test_settings


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 31, 12, 0, 0))


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def api_key(db_session):
    SecurityService(db_session).ensure_api_key(TEST_API_KEY, name="test")
    db_session.commit()
    return TEST_API_KEY


@pytest.fixture
def client(db_session, settings, api_key):
    """
    Provide a test client with the test database.

    get_db and get_settings are overridden so the app uses the
    test session and test settings. Every request carries the
    test API key unless the test replaces the header.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app, headers={"x-api-key": api_key})
    app.dependency_overrides.clear()
