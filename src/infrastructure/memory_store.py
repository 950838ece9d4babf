"""In-process counter/cache store.

Used in TEST_MODE and for single-process development. It honors the same
contract as the Redis store, including atomic increment-and-expire, but its
state is per process: running several workers multiplies the effective rate
limit.
"""

import asyncio
import time
from typing import Callable, Dict, Optional, Tuple

from src.core.exceptions import CounterStoreError
from src.domain.interfaces.infrastructure import ICounterStore


class InMemoryCounterStore(ICounterStore):
    """Counter store keeping ``key -> (value, expires_at)`` in a dictionary.

    Args:
        clock: Monotonic time source in seconds; injectable so tests can move
            time forward without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = asyncio.Lock()
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    def _live(self, key: str) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return entry

    def _incr(self, key: str) -> Tuple[int, Optional[float]]:
        entry = self._live(key)
        if entry is None:
            self._data[key] = ("1", None)
            return 1, None
        value, expires_at = entry
        try:
            current = int(value) + 1
        except ValueError as exc:
            raise CounterStoreError(f"value at {key} is not an integer") from exc
        self._data[key] = (str(current), expires_at)
        return current, expires_at

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        async with self._lock:
            self._data[key] = (value, self._clock() + ttl_seconds)

    async def increment(self, key: str) -> int:
        async with self._lock:
            current, _ = self._incr(key)
            return current

    async def expire(self, key: str, ttl_seconds: int) -> None:
        async with self._lock:
            entry = self._live(key)
            if entry is not None:
                self._data[key] = (entry[0], self._clock() + ttl_seconds)

    async def atomic_increment_and_expire(self, key: str, ttl_seconds: int) -> int:
        async with self._lock:
            current, _ = self._incr(key)
            if current == 1:
                self._data[key] = ("1", self._clock() + ttl_seconds)
            return current

    async def ttl(self, key: str) -> Optional[float]:
        """Remaining lifetime of ``key`` in seconds, None if absent or persistent."""
        async with self._lock:
            entry = self._live(key)
            if entry is None or entry[1] is None:
                return None
            return entry[1] - self._clock()

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        async with self._lock:
            self._data.clear()
