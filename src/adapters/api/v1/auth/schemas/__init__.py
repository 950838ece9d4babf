from __future__ import annotations

"""Authentication API schemas package."""

# flake8: noqa: F401 – re-export

from .requests import ForgotPasswordRequest, LoginRequest, RegisterRequest
from .responses import MessageResponse, TokenResponse
