"""
Journal Ledger: FastAPI application.

This is the entry point for the application.
All routers and error handlers are registered here. The
database engine lives for the lifetime of the application:
created on startup, disposed on shutdown.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from journal_ledger.config import get_settings
from journal_ledger.logging_config import configure_logging
from journal_ledger.models.base import create_db_engine, create_session_factory
from journal_ledger.services.security_service import SecurityService
from journal_ledger.api.errors import register_error_handlers
from journal_ledger.api.health import router as health_router
from journal_ledger.api.accounts import router as accounts_router
from journal_ledger.api.journal import router as journal_router
from journal_ledger.api.reports import router as reports_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)


def _seed_default_api_key(session_factory) -> None:
    """Make the configured development key usable."""
    with session_factory() as db:
        try:
            SecurityService(db).ensure_api_key(settings.DEFAULT_API_KEY)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning(
                "Could not seed the default API key; is the schema migrated?",
                exc_info=True,
            )


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = create_db_engine(settings)
    app.state.session_factory = create_session_factory(engine)

    if settings.REQUIRE_API_KEY and settings.ENVIRONMENT == "development":
        _seed_default_api_key(app.state.session_factory)

    logger.info(
        "%s %s started (%s)",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
    )
    yield

    engine.dispose()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Double-entry journal ledger with idempotent posting",
    lifespan=lifespan,
)

register_error_handlers(app)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router, prefix=settings.API_PREFIX)
app.include_router(journal_router, prefix=settings.API_PREFIX)
app.include_router(reports_router, prefix=settings.API_PREFIX)
