"""
Health Check Routes

GET {API_BASE_PATH}/health reports the service and cache status. The cache is
an accelerator, not a dependency: when Redis is unreachable the status is
"degraded" and the HTTP code stays 200, because requests are still served
uncached.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from listing_cache.application.api.dependencies import KVStoreDep, SettingsDep

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str  # "healthy" or "degraded"
    timestamp: str
    version: str
    cache: dict | None = None


@router.get("", response_model=HealthResponse)
async def health_check(settings: SettingsDep, store: KVStoreDep):
    """Service status with the state of the Redis cache."""
    cache: dict = {"enabled": settings.CACHE_ENABLED, "connected": False}
    if store is not None:
        cache.update(await store.health_check())
        cache["enabled"] = settings.CACHE_ENABLED

    return HealthResponse(
        status="healthy" if cache.get("status") == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        version=settings.APP_VERSION,
        cache=cache,
    )
