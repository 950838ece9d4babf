from __future__ import annotations

"""Request-payload Pydantic models for authentication endpoints.

Fields are optional at the schema level: presence, email format and password
length are business rules checked by the domain service, which reports them
with the API's own messages instead of FastAPI's 422 payload.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Payload expected by ``POST /register``."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = Field(None, examples=["alice@example.com"])
    username: Optional[str] = Field(None, examples=["alice"])
    password: Optional[str] = Field(None, examples=["password123"])
    referral_code: Optional[str] = Field(None, alias="referralCode", examples=["K7QW3MZP"])


class LoginRequest(BaseModel):
    """Payload expected by ``POST /login``."""

    model_config = ConfigDict(populate_by_name=True)

    email_or_username: Optional[str] = Field(
        None, alias="emailOrUsername", examples=["alice@example.com"]
    )
    password: Optional[str] = Field(None, examples=["password123"])


class ForgotPasswordRequest(BaseModel):
    """Payload expected by ``POST /forgot-password``."""

    email: Optional[str] = Field(None, examples=["alice@example.com"])
