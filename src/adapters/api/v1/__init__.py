"""API router configuration.

Every route below passes the rate limiter before its own dependencies run.
"""

from fastapi import APIRouter, Depends

from src.core.rate_limit import enforce_rate_limit

from .auth import router as auth_router
from .health import router as health_router
from .referrals import router as referrals_router

api_router = APIRouter(dependencies=[Depends(enforce_rate_limit)])

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(auth_router)
api_router.include_router(referrals_router)
