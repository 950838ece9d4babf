from __future__ import annotations

"""/register route module.

Creates an account, optionally credited to the owner of a referral code, and
returns a session token. Account creation and referral attribution share one
transaction: a rejected code leaves no account behind.
"""

import structlog
from fastapi import APIRouter, status

from src.adapters.api.v1.auth.schemas import RegisterRequest, TokenResponse
from src.infrastructure.dependency_injection.auth_dependencies import (
    UserAuthenticationServiceDep,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Creates an account from email, username and password, with an optional referral code.",
)
async def register_user(
    payload: RegisterRequest,
    auth_service: UserAuthenticationServiceDep,
) -> TokenResponse:
    """Register a new account.

    Raises:
        ValidationError: 400 for missing fields, bad email format or short password.
        DuplicateUserError: 400 when the email or username is taken.
        ReferralError: 400 for an unknown, own or expired referral code.
    """
    token = await auth_service.register(
        email=payload.email,
        username=payload.username,
        password=payload.password,
        referral_code=payload.referral_code,
    )
    return TokenResponse(token=token)
