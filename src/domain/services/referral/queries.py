"""Cached read models for an account's referrals."""

from typing import Any, Dict, List

from src.domain.entities.account import as_utc
from src.domain.entities.referral import ReferralStatus
from src.domain.interfaces.repositories import IReferralRepository
from src.infrastructure.cache import CacheAsideReader


def referrals_key(account_id: int) -> str:
    return f"referrals:{account_id}"


def referral_stats_key(account_id: int) -> str:
    return f"referral-stats:{account_id}"


class ReferralQueryService:
    """Serves the referral list and statistics through the cache.

    Cached entries are never invalidated; a new referral becomes visible once
    the entry's TTL elapses.
    """

    def __init__(self, referrals: IReferralRepository, cache: CacheAsideReader, ttl_seconds: int):
        self.referrals = referrals
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def list_referrals(self, account_id: int) -> List[Dict[str, Any]]:
        async def load() -> List[Dict[str, Any]]:
            rows = await self.referrals.list_by_referrer(account_id)
            return [
                {
                    "id": referral.id,
                    "referrerId": referral.referrer_id,
                    "referredUserId": referral.referred_account_id,
                    "status": ReferralStatus(referral.status).value,
                    "createdAt": as_utc(referral.created_at).isoformat(),
                    "referredUser": {"username": account.username, "email": account.email},
                }
                for referral, account in rows
            ]

        return await self.cache.read(referrals_key(account_id), load, self.ttl_seconds)

    async def referral_stats(self, account_id: int) -> Dict[str, int]:
        async def load() -> Dict[str, int]:
            return {"successfulReferrals": await self.referrals.count_successful(account_id)}

        return await self.cache.read(referral_stats_key(account_id), load, self.ttl_seconds)
