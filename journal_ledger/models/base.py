"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db().

The engine is not created at import time. The application
builds it from its Settings when it starts (see main.lifespan)
and disposes it on shutdown.
"""

from datetime import datetime, timezone

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from journal_ledger.config import Settings


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- Engine ---
def create_db_engine(settings: Settings) -> Engine:
    """
    Create the engine and its bounded connection pool.

    pool_pre_ping=True tests connections before using them,
    which handles cases where the database restarted or a
    connection went stale. SQLite (used in tests) has no
    pool sizing options.
    """
    if settings.DATABASE_URL.startswith("sqlite"):
        return create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )


# --- Session Factory ---
# autocommit=False: the services decide when a unit of work commits.
# autoflush=False: SQL is only sent on an explicit flush or commit.
def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
    )


# --- Base Model Class ---
class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db(request: Request):
    """
    Provide a database session for a single request.

    The session comes from the factory the application stored
    on its state at startup. The try/finally guarantees the
    connection goes back to the pool even if the endpoint fails.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
