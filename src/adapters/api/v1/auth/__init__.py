from __future__ import annotations

"""Authentication router package: bundles registration, login and password reset."""

from fastapi import APIRouter

from .routes import forgot_password as forgot_password_route
from .routes import login as login_route
from .routes import register as register_route

router = APIRouter(tags=["auth"])

# Delegate to sub-routers ----------------------------------------------------

router.include_router(register_route.router, prefix="/register")
router.include_router(login_route.router, prefix="/login")
router.include_router(forgot_password_route.router, prefix="/forgot-password")

__all__ = ["router"]
