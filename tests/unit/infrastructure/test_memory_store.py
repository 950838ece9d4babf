import asyncio

import pytest

from src.core.exceptions import CounterStoreError
from src.infrastructure.memory_store import InMemoryCounterStore


class TestInMemoryCounterStore:
    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self, counter_store):
        assert await counter_store.get("nope") is None

    @pytest.mark.asyncio
    async def test_set_with_ttl_expires(self, counter_store, clock):
        await counter_store.set_with_ttl("k", "v", 10)
        clock.advance(9.9)
        assert await counter_store.get("k") == "v"
        clock.advance(0.1)
        assert await counter_store.get("k") is None

    @pytest.mark.asyncio
    async def test_increment_creates_counter_at_one(self, counter_store):
        assert await counter_store.increment("c") == 1
        assert await counter_store.increment("c") == 2
        assert await counter_store.get("c") == "2"

    @pytest.mark.asyncio
    async def test_increment_non_integer_raises(self, counter_store):
        await counter_store.set_with_ttl("k", "abc", 10)
        with pytest.raises(CounterStoreError):
            await counter_store.increment("k")

    @pytest.mark.asyncio
    async def test_atomic_increment_sets_expiry_only_on_create(self, counter_store, clock):
        assert await counter_store.atomic_increment_and_expire("c", 60) == 1
        clock.advance(30)
        assert await counter_store.atomic_increment_and_expire("c", 60) == 2
        # The window is anchored at the first increment, not extended.
        assert await counter_store.ttl("c") == pytest.approx(30)
        clock.advance(30)
        assert await counter_store.get("c") is None
        assert await counter_store.atomic_increment_and_expire("c", 60) == 1

    @pytest.mark.asyncio
    async def test_plain_increment_has_no_expiry(self, counter_store, clock):
        await counter_store.increment("c")
        assert await counter_store.ttl("c") is None
        await counter_store.expire("c", 5)
        clock.advance(5)
        assert await counter_store.get("c") is None

    @pytest.mark.asyncio
    async def test_concurrent_increments_are_not_lost(self):
        store = InMemoryCounterStore()
        results = await asyncio.gather(
            *(store.atomic_increment_and_expire("c", 60) for _ in range(200))
        )
        assert sorted(results) == list(range(1, 201))
        assert await store.get("c") == "200"

    @pytest.mark.asyncio
    async def test_ping_and_close(self, counter_store):
        await counter_store.set_with_ttl("k", "v", 10)
        assert await counter_store.ping() is True
        await counter_store.close()
        assert await counter_store.get("k") is None
