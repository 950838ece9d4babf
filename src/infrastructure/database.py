"""
Database infrastructure module for managing the relational store.

This module provides the core database functionality including:
- Async engine configuration with connection pooling
- Health check mechanisms
- Table creation with retry logic
- Session management for FastAPI dependency injection

Accounts and referral edges live here. The store is the authority for every
uniqueness guarantee of the referral graph (identity, referral code, one edge
per referred account), so repositories rely on its constraints rather than on
read-then-write checks.

**Security Note**: Use ``sslmode``/``ssl`` in DATABASE_URL when connecting
over an untrusted network and never log the URL, since it embeds credentials.
"""

from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.core.config.settings import settings
from src.core.logging import logger

# Registers the table models on SQLModel.metadata.
from src.domain.entities import Account, Referral  # noqa: F401


def build_engine(url: str) -> AsyncEngine:
    """Creates the async engine for ``url``.

    SQLite (used by the test suite) gets a single shared connection; any other
    backend gets a bounded, pre-pinged connection pool.
    """
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.POSTGRES_POOL_SIZE,
        max_overflow=settings.POSTGRES_MAX_OVERFLOW,
        pool_timeout=settings.POSTGRES_POOL_TIMEOUT,
        pool_pre_ping=True,  # Check connection health before use
    )


engine = build_engine(settings.DATABASE_URL)

AsyncSessionFactory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def check_database_health(db_engine: AsyncEngine = engine) -> bool:
    """
    Performs a health check on the database connection.

    Returns:
        bool: True if the database answered ``SELECT 1``, False otherwise
    """
    try:
        async with db_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.error("database_health_check_failed", error=str(e))
        return False


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=4, max=10),
    retry=retry_if_exception_type(OperationalError),
    reraise=True,
)
async def create_db_and_tables(db_engine: AsyncEngine = engine) -> None:
    """
    Creates database tables with retry logic.

    Attempts are retried with exponential backoff while the database is
    unreachable (``OperationalError``), which covers containers that start
    before their database accepts connections.

    Raises:
        OperationalError: If the database stays unreachable after all attempts
    """
    try:
        async with db_engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("database_tables_created")
    except OperationalError as e:
        logger.warning("database_tables_creation_retry", error=str(e))
        raise
    except SQLAlchemyError as e:
        logger.error("database_tables_creation_failed", error=str(e))
        raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for database sessions.

    Yields one session per request. Work left uncommitted when the request
    fails is rolled back before the session is closed.

    Yields:
        AsyncSession: An asynchronous database session
    """
    async with AsyncSessionFactory() as session:
        try:
            yield session
        except Exception as e:
            logger.error("database_session_error", error=str(e), error_type=type(e).__name__)
            await session.rollback()
            raise


async def dispose_engine(db_engine: AsyncEngine = engine) -> None:
    """Closes every pooled connection."""
    await db_engine.dispose()
    logger.info("database_engine_disposed")
