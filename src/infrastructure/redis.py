"""
Redis Counter Store Module

This module provides the Redis-backed implementation of the counter/cache
store used by the rate limiter and by cache-aside reads.

Every call is bounded by ``REDIS_OPERATION_TIMEOUT_SECONDS``. Connection
errors, Redis errors and timeouts are translated into ``CounterStoreError`` so
callers decide between failing closed (rate limiting) and degrading (cache).

**Security Note**: Ensure that the Redis connection URL (REDIS_URL) uses
``rediss://`` when connecting over an untrusted network, and never log the URL
since it may embed the password.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError
from structlog import get_logger

from src.core.config.settings import settings
from src.core.exceptions import CounterStoreError
from src.domain.interfaces.infrastructure import ICounterStore
from src.infrastructure.memory_store import InMemoryCounterStore

logger = get_logger(__name__)

T = TypeVar("T")

# KEYS[1] = counter key, ARGV[1] = ttl in seconds.
# Runs atomically inside Redis: the expiry is attached in the same step that
# creates the counter and is left untouched on later increments.
INCREMENT_AND_EXPIRE_SCRIPT = """
local current = redis.call('INCR', KEYS[1])
if current == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return current
"""


class RedisCounterStore(ICounterStore):
    """Counter/cache store backed by a shared Redis instance.

    Attributes:
        client (Redis): Async Redis client created with ``decode_responses=True``.
        operation_timeout (float): Upper bound, in seconds, for each call.
    """

    def __init__(self, client: Redis, operation_timeout: float = 2.0):
        self.client = client
        self.operation_timeout = operation_timeout
        self._increment_and_expire = client.register_script(INCREMENT_AND_EXPIRE_SCRIPT)

    async def _call(self, operation: str, key: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.operation_timeout)
        except (RedisError, asyncio.TimeoutError, OSError) as exc:
            logger.error(
                "counter_store_call_failed",
                operation=operation,
                key=key,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise CounterStoreError(f"{operation} failed for {key}: {exc!r}") from exc

    async def get(self, key: str) -> Optional[str]:
        return await self._call("get", key, self.client.get(key))

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._call("set_with_ttl", key, self.client.set(key, value, ex=ttl_seconds))

    async def increment(self, key: str) -> int:
        return int(await self._call("increment", key, self.client.incr(key)))

    async def expire(self, key: str, ttl_seconds: int) -> None:
        await self._call("expire", key, self.client.expire(key, ttl_seconds))

    async def atomic_increment_and_expire(self, key: str, ttl_seconds: int) -> int:
        result = await self._call(
            "atomic_increment_and_expire",
            key,
            self._increment_and_expire(keys=[key], args=[ttl_seconds]),
        )
        return int(result)

    async def ttl(self, key: str) -> Optional[float]:
        # -2: no such key, -1: no expiry
        remaining = int(await self._call("ttl", key, self.client.ttl(key)))
        return float(remaining) if remaining >= 0 else None

    async def ping(self) -> bool:
        try:
            return bool(await self._call("ping", "-", self.client.ping()))
        except CounterStoreError:
            return False

    async def close(self) -> None:
        await self.client.aclose()
        logger.debug("Redis connection closed")


def create_counter_store() -> ICounterStore:
    """Builds the counter store for the current configuration.

    In TEST_MODE (or with a ``memory://`` URL) the in-process store is used so
    the application runs without Redis; every other configuration connects to
    ``REDIS_URL``.
    """
    if settings.TEST_MODE or settings.REDIS_URL.startswith("memory://"):
        logger.info("counter_store_selected", backend="memory")
        return InMemoryCounterStore()

    client = Redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.REDIS_OPERATION_TIMEOUT_SECONDS,
        socket_connect_timeout=settings.REDIS_OPERATION_TIMEOUT_SECONDS,
    )
    logger.info("counter_store_selected", backend="redis")
    return RedisCounterStore(client, operation_timeout=settings.REDIS_OPERATION_TIMEOUT_SECONDS)
