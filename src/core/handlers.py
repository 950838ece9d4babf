from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

This module contains centralized handlers for custom application exceptions,
translating them into HTTP responses. Every error body has the shape
``{"error": "<reason>"}``; 5xx responses never carry internal details.
"""

from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette import status
from structlog import get_logger

from src.core.exceptions import (
    AuthenticationError,
    DuplicateUserError,
    InfrastructureError,
    RateLimitExceededError,
    ReferlinkError,
    ReferralError,
    UserNotFoundError,
    ValidationError,
)

__all__ = [
    "error_response",
    "validation_error_handler",
    "request_validation_error_handler",
    "duplicate_user_error_handler",
    "referral_error_handler",
    "authentication_error_handler",
    "user_not_found_error_handler",
    "rate_limit_exceeded_error_handler",
    "infrastructure_error_handler",
    "database_exception_handler",
    "referlink_error_handler",
    "unhandled_exception_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)

SERVER_ERROR = "Server error"


def error_response(
    status_code: int, message: str, headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles `ValidationError`, returning a `400 Bad Request`."""
    logger.info("Request rejected", error=exc.code, path=request.url.path)
    return error_response(status.HTTP_400_BAD_REQUEST, exc.message)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handles bodies FastAPI could not parse (wrong JSON types, bad JSON).

    Args:
        request: The incoming `Request` object.
        exc: The `RequestValidationError` raised by FastAPI.

    Returns:
        A `JSONResponse` with a 400 status code.
    """
    logger.info("Malformed request body", path=request.url.path, errors=len(exc.errors()))
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")


async def duplicate_user_error_handler(request: Request, exc: DuplicateUserError) -> JSONResponse:
    """Handles `DuplicateUserError`, returning a `400 Bad Request`.

    This is triggered when a registration attempt is made with a username or
    email that already exists, including when a concurrent registration won
    the race at the database.
    """
    return error_response(status.HTTP_400_BAD_REQUEST, exc.message)


async def referral_error_handler(request: Request, exc: ReferralError) -> JSONResponse:
    """Handles every `ReferralError`, returning a `400 Bad Request`.

    The registration that carried the rejected code has been rolled back, so
    the client may retry with another code or none.
    """
    logger.info("Referral rejected", error=exc.code, client_ip=_client_ip(request))
    return error_response(status.HTTP_400_BAD_REQUEST, exc.message)


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handles `AuthenticationError`, returning a `401 Unauthorized`.

    This handler catches failed logins as well as missing, invalid, expired
    and orphaned bearer tokens. Expired tokens are reported with the same
    message as invalid ones.

    Args:
        request: The incoming `Request` object.
        exc: The `AuthenticationError` instance.

    Returns:
        A `JSONResponse` with a 401 status code and a `WWW-Authenticate` header.
    """
    logger.warning(
        "Authentication failure",
        error=exc.code,
        client_ip=_client_ip(request),
        path=request.url.path,
    )
    return error_response(
        status.HTTP_401_UNAUTHORIZED, exc.message, headers={"WWW-Authenticate": "Bearer"}
    )


async def user_not_found_error_handler(request: Request, exc: UserNotFoundError) -> JSONResponse:
    """Handles `UserNotFoundError`, returning a `404 Not Found`."""
    return error_response(status.HTTP_404_NOT_FOUND, exc.message)


async def rate_limit_exceeded_error_handler(
    request: Request, exc: RateLimitExceededError
) -> JSONResponse:
    """Handles `RateLimitExceededError`, returning a `429 Too Many Requests`.

    Args:
        request: The incoming `Request` object.
        exc: The `RateLimitExceededError` instance.

    Returns:
        A `JSONResponse` with a 429 status code, a `Retry-After` header
        holding the seconds left in the window and the rate-limit headers.
    """
    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)
    if exc.limit is not None:
        headers["X-RateLimit-Limit"] = str(exc.limit)
        headers["X-RateLimit-Remaining"] = "0"
    return error_response(status.HTTP_429_TOO_MANY_REQUESTS, exc.message, headers=headers or None)


async def infrastructure_error_handler(request: Request, exc: InfrastructureError) -> JSONResponse:
    """Handles failures of the counter store, database and mail sender.

    The internal message is logged and replaced by a generic reply.
    """
    logger.error(
        "Infrastructure failure",
        error=exc.code,
        detail=exc.message,
        path=request.url.path,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR)


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handles SQLAlchemy errors that escaped the repositories."""
    logger.error(
        "Database failure",
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR)


async def referlink_error_handler(request: Request, exc: ReferlinkError) -> JSONResponse:
    """Fallback for application errors without a more specific handler."""
    logger.error("Unhandled application error", error=exc.code, path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application.

    Handlers are resolved along the exception's MRO, so the most specific
    registered class wins (e.g. `CounterStoreError` is served by the
    infrastructure handler, not the `ReferlinkError` fallback).

    Args:
        app: The `FastAPI` application instance.
    """
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(DuplicateUserError, duplicate_user_error_handler)
    app.add_exception_handler(ReferralError, referral_error_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(UserNotFoundError, user_not_found_error_handler)
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_error_handler)
    app.add_exception_handler(InfrastructureError, infrastructure_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(ReferlinkError, referlink_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
