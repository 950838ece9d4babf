"""
Feature tests for the referral journey through the HTTP API.

Alice registers and shares her referral code; Bob registers with it. The
edge, Bob's referrer and Alice's statistics are then observed through the
authenticated read endpoints, including their caching behavior.
"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select, update

from src.core.exceptions import CounterStoreError
from src.domain.entities.account import Account, utcnow
from src.domain.entities.referral import Referral


async def referral_code_of(session_factory, username: str) -> str:
    async with session_factory() as session:
        result = await session.execute(select(Account).where(Account.username == username))
        return result.scalars().one().referral_code


class TestReferralJourney:
    @pytest.mark.asyncio
    async def test_alice_refers_bob(self, async_client, register_account, session_factory):
        response = await register_account("alice@example.com", "alice")
        assert response.status_code == 201
        alice_token = response.json()["token"]
        code = await referral_code_of(session_factory, "alice")

        response = await register_account("bob@example.com", "bob", referralCode=code)
        assert response.status_code == 201
        assert "token" in response.json()

        headers = {"Authorization": f"Bearer {alice_token}"}
        stats = await async_client.get("/api/referral-stats", headers=headers)
        assert stats.status_code == 200
        assert stats.json() == {"successfulReferrals": 1}

        referrals = await async_client.get("/api/referrals", headers=headers)
        assert referrals.status_code == 200
        [edge] = referrals.json()
        assert edge["status"] == "successful"
        assert edge["referredUser"] == {"username": "bob", "email": "bob@example.com"}
        assert set(edge) == {
            "id",
            "referrerId",
            "referredUserId",
            "status",
            "createdAt",
            "referredUser",
        }

        async with session_factory() as session:
            result = await session.execute(select(Account).where(Account.username == "bob"))
            bob = result.scalars().one()
        assert bob.referred_by == edge["referrerId"]
        assert edge["referredUserId"] == bob.id

    @pytest.mark.asyncio
    async def test_concurrent_registrations_with_one_code(
        self, async_client, register_account, session_factory
    ):
        alice_token = (await register_account("alice@example.com", "alice")).json()["token"]
        code = await referral_code_of(session_factory, "alice")

        responses = await asyncio.gather(
            *(
                register_account(f"friend{i}@example.com", f"friend{i}", referralCode=code)
                for i in range(5)
            )
        )

        assert [r.status_code for r in responses] == [201] * 5
        async with session_factory() as session:
            alice = (
                await session.execute(select(Account).where(Account.username == "alice"))
            ).scalars().one()
            friends = (
                await session.execute(select(Account).where(Account.username != "alice"))
            ).scalars().all()
            edges = (await session.execute(select(Referral))).scalars().all()

        assert len(friends) == 5
        assert all(friend.referred_by == alice.id for friend in friends)
        assert alice.referred_by is None
        assert sorted(edge.referred_account_id for edge in edges) == sorted(
            friend.id for friend in friends
        )
        assert {edge.referrer_id for edge in edges} == {alice.id}

        stats = await async_client.get(
            "/api/referral-stats", headers={"Authorization": f"Bearer {alice_token}"}
        )
        assert stats.json() == {"successfulReferrals": 5}

    @pytest.mark.asyncio
    async def test_rejected_referral_codes(self, register_account, session_factory):
        await register_account("alice@example.com", "alice")

        response = await register_account("bob@example.com", "bob", referralCode="NOSUCH12")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid referral code"}

        # Nothing was persisted, so the same identity can register again.
        response = await register_account("bob@example.com", "bob")
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_expired_code_rejected_while_stats_are_cached(
        self, async_client, register_account, session_factory
    ):
        alice_token = (await register_account("alice@example.com", "alice")).json()["token"]
        code = await referral_code_of(session_factory, "alice")
        headers = {"Authorization": f"Bearer {alice_token}"}
        warm = await async_client.get("/api/referral-stats", headers=headers)
        assert warm.json() == {"successfulReferrals": 0}

        async with session_factory() as session:
            await session.execute(
                update(Account)
                .where(Account.username == "alice")
                .values(referral_code_expires_at=utcnow() - timedelta(seconds=1))
            )
            await session.commit()

        response = await register_account("bob@example.com", "bob", referralCode=code)

        assert response.status_code == 400
        assert response.json() == {"error": "Referral code has expired"}
        async with session_factory() as session:
            assert (await session.execute(select(Referral))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_cached_stats_lag_until_ttl(
        self, async_client, register_account, session_factory, clock
    ):
        alice_token = (await register_account("alice@example.com", "alice")).json()["token"]
        code = await referral_code_of(session_factory, "alice")
        headers = {"Authorization": f"Bearer {alice_token}"}

        first = await async_client.get("/api/referral-stats", headers=headers)
        assert first.json() == {"successfulReferrals": 0}

        await register_account("bob@example.com", "bob", referralCode=code)
        cached = await async_client.get("/api/referral-stats", headers=headers)
        assert cached.content == first.content

        clock.advance(300)
        fresh = await async_client.get("/api/referral-stats", headers=headers)
        assert fresh.json() == {"successfulReferrals": 1}

    @pytest.mark.asyncio
    async def test_reads_survive_a_failing_cache(
        self, async_client, register_account, counter_store, mocker
    ):
        token = (await register_account("alice@example.com", "alice")).json()["token"]
        mocker.patch.object(counter_store, "get", side_effect=CounterStoreError("down"))

        response = await async_client.get(
            "/api/referrals", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 200
        assert response.json() == []
