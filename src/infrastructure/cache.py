"""Cache-aside reads over the counter/cache store.

The cache only ever holds values produced by a successful authoritative read.
The store is optional for correctness: when it fails, reads go straight to
the loader and the request still succeeds.
"""

import json
from typing import Any, Awaitable, Callable

from structlog import get_logger

from src.core.exceptions import CounterStoreError
from src.domain.interfaces.infrastructure import ICounterStore

logger = get_logger(__name__)


def encode(value: Any) -> str:
    """Deterministic JSON encoding used for cache entries."""
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


class CacheAsideReader:
    """Serves loader results through the cache with a bounded TTL.

    Args:
        store: The shared counter/cache store.
        default_ttl: TTL in seconds used when ``read`` is not given one.
    """

    def __init__(self, store: ICounterStore, default_ttl: int = 300):
        self.store = store
        self.default_ttl = default_ttl

    async def read(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl_seconds: int | None = None,
    ) -> Any:
        """Returns the cached value for ``key`` or loads, caches and returns it.

        Raises:
            Whatever ``loader`` raises. Store failures never propagate.
        """
        try:
            cached = await self.store.get(key)
        except CounterStoreError as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return await loader()

        if cached is not None:
            try:
                value = json.loads(cached)
            except ValueError:
                logger.warning("cache_entry_undecodable", key=key)
            else:
                logger.debug("cache_hit", key=key)
                return value

        logger.debug("cache_miss", key=key)
        value = await loader()
        try:
            await self.store.set_with_ttl(key, encode(value), ttl_seconds or self.default_ttl)
        except CounterStoreError as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
        return value
