from __future__ import annotations

"""Fixed-window rate limiter and its FastAPI dependency.

Each identifier owns one counter, ``rate-limit:<identifier>``, in the shared
counter store. Admission is a single atomic store call that increments the
counter and, if it was just created, sets its expiry to the window length.
The post-increment value decides: up to ``max_requests`` calls per window are
admitted, later ones are rejected without touching the counter again. Because
the decision is never a separate read, concurrent requests from one origin
can neither lose nor double-count an increment.

A rejection reports the seconds left on the counter as ``Retry-After``.

When the store fails, the limiter fails closed (``CounterStoreError`` reaches
the error handlers as a 500) unless ``fail_open`` is set, in which case the
request is admitted and a warning is logged.
"""

import math
from dataclasses import dataclass

from fastapi import Request, Response
from structlog import get_logger

from src.core.config.settings import settings
from src.core.exceptions import CounterStoreError, RateLimitExceededError
from src.domain.interfaces.infrastructure import ICounterStore

logger = get_logger(__name__)

KEY_PREFIX = "rate-limit"


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one admission.

    Attributes:
        allowed: Whether the request may proceed.
        count: Counter value after this request, None if the store failed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
    """

    allowed: bool
    count: int | None
    limit: int
    remaining: int


class RateLimiter:
    """Per-identifier fixed-window limiter backed by an ``ICounterStore``."""

    def __init__(
        self,
        store: ICounterStore,
        window_seconds: int = 900,
        max_requests: int = 100,
        fail_open: bool = False,
    ):
        self.store = store
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.fail_open = fail_open

    @staticmethod
    def key_for(identifier: str) -> str:
        return f"{KEY_PREFIX}:{identifier}"

    async def consume(self, identifier: str) -> RateLimitResult:
        """Records one request for ``identifier`` and decides on it.

        Raises:
            CounterStoreError: If the store failed and the limiter fails closed.
        """
        key = self.key_for(identifier)
        try:
            count = await self.store.atomic_increment_and_expire(key, self.window_seconds)
        except CounterStoreError as exc:
            if not self.fail_open:
                logger.error("rate_limit_store_unavailable", identifier=identifier, policy="closed")
                raise
            logger.warning(
                "rate_limit_store_unavailable",
                identifier=identifier,
                policy="open",
                error=str(exc),
            )
            return RateLimitResult(True, None, self.max_requests, self.max_requests)

        allowed = count <= self.max_requests
        return RateLimitResult(allowed, count, self.max_requests, max(self.max_requests - count, 0))

    async def retry_after(self, identifier: str) -> int:
        """Whole seconds until the identifier's window closes.

        Falls back to the full window length when the store cannot tell.
        """
        try:
            remaining = await self.store.ttl(self.key_for(identifier))
        except CounterStoreError as exc:
            logger.warning("rate_limit_ttl_unavailable", identifier=identifier, error=str(exc))
            return self.window_seconds
        if remaining is None:
            return self.window_seconds
        return max(1, min(self.window_seconds, math.ceil(remaining)))

    async def admit(self, identifier: str) -> RateLimitResult:
        """Like ``consume`` but raises ``RateLimitExceededError`` on rejection."""
        result = await self.consume(identifier)
        if not result.allowed:
            retry_after = await self.retry_after(identifier)
            logger.warning(
                "rate_limit_exceeded",
                identifier=identifier,
                count=result.count,
                limit=result.limit,
                retry_after=retry_after,
            )
            raise RateLimitExceededError(retry_after=retry_after, limit=result.limit)
        return result


def build_rate_limiter(store: ICounterStore) -> RateLimiter:
    return RateLimiter(
        store,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        fail_open=settings.RATE_LIMIT_FAIL_OPEN,
    )


def client_identifier(request: Request) -> str:
    return request.client.host if request.client and request.client.host else "unknown"


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """FastAPI dependency gating every route of the API router.

    Admitted responses carry ``X-RateLimit-Limit`` and
    ``X-RateLimit-Remaining``; they are omitted when the store failed open.

    Raises:
        RateLimitExceededError: 429 when the identifier is over its budget.
        CounterStoreError: 500 when the store failed and the limiter fails closed.
    """
    if not settings.RATE_LIMIT_ENABLED:
        return

    limiter: RateLimiter = request.app.state.rate_limiter
    result = await limiter.admit(client_identifier(request))
    if result.count is not None:
        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
