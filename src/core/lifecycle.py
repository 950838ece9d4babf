"""Application lifecycle management.

This module handles application startup and shutdown events, ensuring proper
initialization and cleanup of application resources: the shared counter
store, the rate limiter built on it and the database engine.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.core.config.settings import settings
from src.core.logging import logger
from src.core.rate_limit import build_rate_limiter
from src.infrastructure.database import check_database_health, create_db_and_tables, dispose_engine
from src.infrastructure.redis import create_counter_store


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager that handles startup and shutdown events.

        On startup it creates the tables (retrying while the database comes
        up), opens the counter store and attaches the store and the rate
        limiter to ``app.state``. On shutdown it closes both connections.

        Args:
            app (FastAPI): The FastAPI application instance

        Raises:
            RuntimeError: If the database is unavailable after table creation
        """
        # Startup
        await create_db_and_tables()
        if not await check_database_health():
            logger.error("database_unavailable_on_startup")
            raise RuntimeError("Database unavailable")

        store = create_counter_store()
        if not await store.ping():
            # Requests fail closed (or open, per RATE_LIMIT_FAIL_OPEN) until it answers.
            logger.warning("counter_store_unavailable_on_startup")
        app.state.counter_store = store
        app.state.rate_limiter = build_rate_limiter(store)
        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        try:
            yield
        finally:
            # Shutdown
            await store.close()
            await dispose_engine()
            logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
