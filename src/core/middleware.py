"""Middleware configuration for the FastAPI application.

This module handles the configuration and registration of all middleware
components: CORS and the per-request logging context.

Rate limiting is not a middleware: it is a dependency of the API router
(``src.core.rate_limit.enforce_rate_limit``) so that its errors go through the
central exception handlers.
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.core.config.settings import settings


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    # CORS middleware configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging context middleware
    app.middleware("http")(request_context_middleware)


async def request_context_middleware(request: Request, call_next):
    """Binds request metadata to every log line emitted while handling it.

    This middleware:
    1. Reuses the caller's ``X-Request-ID`` or generates one
    2. Binds request id, method, path and client address to structlog's
       context variables
    3. Echoes the request id in the response headers

    Args:
        request (Request): The incoming request
        call_next: The next middleware or route handler

    Returns:
        Response: The response with an ``X-Request-ID`` header
    """
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        client_ip=request.client.host if request.client else "unknown",
    )
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = request_id
    return response
