from __future__ import annotations

"""/forgot-password route module.

Issues a short-lived password reset token and mails a reset link. Unknown
emails answer 404, so this endpoint does reveal whether an account exists.
"""

from fastapi import APIRouter

from src.adapters.api.v1.auth.schemas import ForgotPasswordRequest, MessageResponse
from src.infrastructure.dependency_injection.auth_dependencies import (
    UserAuthenticationServiceDep,
)

router = APIRouter()


@router.post("", response_model=MessageResponse, summary="Request a password reset email")
async def forgot_password(
    payload: ForgotPasswordRequest,
    auth_service: UserAuthenticationServiceDep,
) -> MessageResponse:
    await auth_service.request_password_reset(payload.email)
    return MessageResponse(message="Password reset email sent")
