"""Shared fixtures.

The environment is configured before any ``src`` import so that the settings
singleton is built for the test environment: in-memory counter store,
in-memory SQLite, logged (not sent) emails and cheap bcrypt rounds.
"""

import os

os.environ["APP_ENV"] = "test"
os.environ["TEST_MODE"] = "true"
os.environ["JWT_SECRET"] = "test-secret-key-with-enough-entropy-0123456789"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_WORK_FACTOR"] = "4"
os.environ["LOG_JSON"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "true"

from typing import List, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.application import create_application
from src.core.exceptions import EmailServiceError
from src.core.rate_limit import RateLimiter
from src.domain.interfaces.infrastructure import IMailSender
from src.infrastructure.database import build_engine, create_db_and_tables, get_db
from src.infrastructure.dependency_injection.auth_dependencies import get_mail_sender
from src.infrastructure.memory_store import InMemoryCounterStore


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingMailSender(IMailSender):
    def __init__(self):
        self.sent: List[Tuple[str, str]] = []
        self.fail = False

    async def send_password_reset(self, email: str, token: str) -> None:
        if self.fail:
            raise EmailServiceError("smtp down")
        self.sent.append((email, token))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def counter_store(clock):
    return InMemoryCounterStore(clock=clock)


@pytest_asyncio.fixture
async def test_engine():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mail_sender():
    return RecordingMailSender()


@pytest.fixture
def rate_limit_max():
    """Requests per window for the app fixture; override in a module to change it."""
    return 100


@pytest.fixture
def app(session_factory, counter_store, mail_sender, rate_limit_max):
    """A fresh application wired to the test database and in-memory store.

    httpx's ASGITransport does not run the lifespan, so the state it would
    create is attached here.
    """
    application = create_application()
    application.state.counter_store = counter_store
    application.state.rate_limiter = RateLimiter(
        counter_store, window_seconds=900, max_requests=rate_limit_max
    )

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_mail_sender] = lambda: mail_sender
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def register_account(async_client):
    """Posts a registration and returns the response."""

    async def _register(email: str, username: str, password: str = "password123", **extra):
        payload = {"email": email, "username": username, "password": password, **extra}
        return await async_client.post("/api/register", json=payload)

    return _register
