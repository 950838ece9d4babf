from __future__ import annotations

"""/referrals and /referral-stats routes.

Both read through the cache-aside reader: results can lag a new referral by
up to ``REFERRAL_CACHE_TTL_SECONDS``.
"""

from typing import List

from fastapi import APIRouter

from src.adapters.api.v1.referrals.schemas import ReferralOut, ReferralStatsOut
from src.core.dependencies.auth import CurrentAccount
from src.infrastructure.dependency_injection.auth_dependencies import ReferralQueryServiceDep

router = APIRouter(tags=["referrals"])


@router.get("/referrals", response_model=List[ReferralOut], summary="List my referrals")
async def list_referrals(account: CurrentAccount, queries: ReferralQueryServiceDep):
    """Referral edges where the caller is the referrer, with the referred user's
    username and email."""
    return await queries.list_referrals(account.id)


@router.get("/referral-stats", response_model=ReferralStatsOut, summary="Count my referrals")
async def referral_stats(account: CurrentAccount, queries: ReferralQueryServiceDep):
    return await queries.referral_stats(account.id)
