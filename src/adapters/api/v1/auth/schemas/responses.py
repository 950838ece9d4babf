from __future__ import annotations

"""Response Pydantic models for authentication endpoints."""

from pydantic import BaseModel


class TokenResponse(BaseModel):
    """Session token returned by registration and login."""

    token: str


class MessageResponse(BaseModel):
    message: str
