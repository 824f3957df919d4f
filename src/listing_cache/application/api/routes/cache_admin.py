"""
Cache Admin Routes

Operator endpoints for the response cache, mounted at
``{API_BASE_PATH}{CACHE_ADMIN_PREFIX}`` (``/api/redis`` by default):

    GET    /keys[?pattern=]   keys with remaining TTL
    GET    /stats             hit/miss/memory statistics
    GET    /key/{key}         one entry (404 when missing)
    DELETE /key/{key}         delete one entry
    DELETE /clear             flush the store
    GET    /metrics           Prometheus counters

Failures are raised by the service and rendered by the application's
exception handlers: InvalidInputError as 400, CacheOperationError as 500,
both with the ``{success: false, error, message}`` envelope.

Key names may contain ``/`` (``cache:/api/properties``), so the key segment
is a path parameter. It is percent-decoded once more after routing so that a
client which encodes the whole key (``cache%3A%2Fresource``) resolves the
same entry.
"""

from urllib.parse import unquote

import structlog
from fastapi import APIRouter, Query, Response, status
from fastapi.responses import JSONResponse

from listing_cache.application.api.dependencies import AdminServiceDep
from listing_cache.application.api.models.admin import (
    ErrorResponse,
    KeyDetailsResponse,
    KeysResponse,
    KeyTTLModel,
    MessageResponse,
    StatsResponse,
)
from listing_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Cache Admin"])


@router.get("/keys", response_model=KeysResponse)
async def list_keys(
    service: AdminServiceDep,
    pattern: str | None = Query(default=None, description="Redis glob pattern, defaults to *"),
):
    """List cached keys matching ``pattern`` with their remaining TTL."""
    entries = await service.list_keys(pattern)
    return KeysResponse(
        count=len(entries),
        keys=[KeyTTLModel(key=entry.key, ttl=entry.ttl) for entry in entries],
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(service: AdminServiceDep):
    """Aggregate cache statistics (keys, hits, misses, hit rate, memory)."""
    return StatsResponse(stats=await service.get_stats())


@router.get(
    "/key/{key:path}",
    response_model=KeyDetailsResponse,
    responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
)
async def get_key_details(key: str, service: AdminServiceDep):
    """Value, TTL, type and size of a single entry."""
    key = unquote(key)
    details = await service.get_key_details(key)
    if details is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ErrorResponse(error="Key not found").model_dump(exclude_none=True),
        )
    return KeyDetailsResponse(details=details)


@router.delete("/key/{key:path}", response_model=MessageResponse)
async def delete_key(key: str, service: AdminServiceDep):
    """Delete one entry; deleting a missing key still succeeds."""
    key = unquote(key)
    message = await service.delete_key(key)
    logger.info("Admin deleted cache key", cache_key=key)
    return MessageResponse(message=message)


@router.delete("/clear", response_model=MessageResponse)
async def clear_cache(service: AdminServiceDep):
    """Flush every entry in the cache database."""
    message = await service.clear()
    logger.warning("Admin cleared cache")
    return MessageResponse(message=message)


@router.get("/metrics")
async def get_prometheus_metrics():
    """Process-local cache counters in Prometheus text format."""
    metrics = get_metrics_collector()
    return Response(content=metrics.get_prometheus_metrics(), media_type=metrics.get_content_type())
