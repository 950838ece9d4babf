"""Application factory."""

from fastapi import FastAPI

from src.adapters.api.v1 import api_router
from src.core.config.settings import settings
from src.core.handlers import register_exception_handlers
from src.core.lifecycle import create_lifespan_manager
from src.core.middleware import configure_middleware


def create_application() -> FastAPI:
    """Builds the referlink API.

    Every route lives under ``API_PREFIX`` and sits behind the rate-limit
    dependency of ``api_router``. Interactive docs are served only when
    ``DEBUG`` is on.
    """
    docs_enabled = settings.DEBUG
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Account registration with referral codes, login, password reset and referral reporting.",
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=create_lifespan_manager(),
    )

    configure_middleware(app)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    return app
