import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request
from pydantic import BaseModel

from src.core.config.settings import settings
from src.core.logging import logger
from src.infrastructure.database import check_database_health

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    version: str
    services: Dict[str, Any]
    timestamp: datetime


async def check_counter_store_health(request: Request) -> Dict[str, Any]:
    """Check the counter/cache store through the instance opened at startup."""
    store = getattr(request.app.state, "counter_store", None)
    if store is None:
        return {"status": "unhealthy", "error": "not initialized"}
    healthy = await store.ping()
    if not healthy:
        logger.error("counter_store_health_check_failed")
    return {"status": "healthy" if healthy else "unhealthy"}


async def check_database_health_async() -> Dict[str, Any]:
    """Check database connection health."""
    is_healthy = await check_database_health()
    return {"status": "healthy" if is_healthy else "unhealthy"}


@router.get("", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint that verifies the store and the database.
    """
    redis_health, db_health = await asyncio.gather(
        check_counter_store_health(request),
        check_database_health_async(),
    )

    services_healthy = all(s["status"] == "healthy" for s in (redis_health, db_health))

    return HealthResponse(
        status="ok" if services_healthy else "degraded",
        env=settings.APP_ENV,
        version=settings.VERSION,
        services={"redis": redis_health, "database": db_health},
        timestamp=datetime.now(timezone.utc),
    )
