from __future__ import annotations

"""/login route module."""

from fastapi import APIRouter

from src.adapters.api.v1.auth.schemas import LoginRequest, TokenResponse
from src.infrastructure.dependency_injection.auth_dependencies import (
    UserAuthenticationServiceDep,
)

router = APIRouter()


@router.post("", response_model=TokenResponse, summary="Log in with email or username")
async def login_user(
    payload: LoginRequest,
    auth_service: UserAuthenticationServiceDep,
) -> TokenResponse:
    """Authenticate and return a session token.

    Unknown accounts and wrong passwords both answer 401 "Invalid credentials".
    """
    token = await auth_service.login(payload.email_or_username, payload.password)
    return TokenResponse(token=token)
