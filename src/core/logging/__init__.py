"""structlog setup shared by every module.

Modules obtain their logger with ``structlog.get_logger(__name__)``; request
scoped values (request id, path, client ip) are bound to contextvars by the
request-context middleware and merged into every event.
"""

import logging
import sys

import structlog

from src.core.config.settings import settings


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Routes structlog through the stdlib root logger at ``log_level``.

    JSON lines are emitted when ``json_logs`` is set, coloured console
    output otherwise.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def mask_email(email: str | None) -> str:
    """``alice@example.com`` -> ``al***@example.com``."""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}"


logger = structlog.get_logger(settings.PROJECT_NAME)
