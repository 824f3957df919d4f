#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Wires the listing response cache together: the Redis adapter is created once
per application and kept on ``app.state.kv_store``; cached routers resolve it
per request; the admin API manages it.

Startup never fails because of Redis. If the store is unreachable the service
starts in degraded mode and every cached route simply runs uncached.

Author: System Architect
Date: 2026-10-18
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listing_cache.application.api.middleware.error_handler import add_error_handling_middleware
from listing_cache.application.api.middleware.request_id import RequestIDMiddleware
from listing_cache.application.api.models.admin import ErrorResponse
from listing_cache.application.api.routes.cache_admin import router as cache_admin_router
from listing_cache.application.api.routes.demo import router as demo_router
from listing_cache.application.api.routes.health import router as health_router
from listing_cache.core.config.constants import HEADER_CACHE, HEADER_REQUEST_ID, Stage
from listing_cache.core.config.settings import Settings, get_settings
from listing_cache.core.exceptions import (
    CacheConnectionError,
    CacheOperationError,
    ListingCacheError,
    ValidationError,
)
from listing_cache.core.interfaces.cache import KeyValueStore
from listing_cache.core.logging.logger import get_logger, get_request_id, setup_logging
from listing_cache.infrastructure.cache.redis_client import RedisClient

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Connect the shared store on startup and close it on shutdown.

    Shutdown waits for in-flight background cache writes before closing the
    connection.
    """
    settings: Settings = app.state.settings
    store: KeyValueStore = app.state.kv_store

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)
    logger.info(
        "Starting listing cache service",
        stage=Stage.INITIALIZATION,
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
        cache_enabled=settings.cache.CACHE_ENABLED,
    )

    try:
        await store.connect()
    except CacheConnectionError as e:
        logger.warning(
            "Redis unavailable, starting with response cache degraded",
            stage=Stage.INITIALIZATION,
            error=e.message,
        )

    try:
        yield
    finally:
        logger.info("Shutting down listing cache service")
        await store.disconnect()
        logger.info("Application shutdown complete")


# ============================================================================
# Exception Handlers
# ============================================================================


async def validation_exception_handler(request: Request, exc: ValidationError):
    """Invalid administrative input: 400 with the admin envelope."""
    logger.info("Rejected invalid input", error=exc.message, details=exc.details)
    body = ErrorResponse(error="Invalid input", message=exc.message)
    return JSONResponse(status_code=400, content=body.model_dump())


async def cache_operation_exception_handler(request: Request, exc: CacheOperationError):
    """Store failure surfaced to operators: 500 with the admin envelope."""
    logger.error("Cache admin operation failed", error=exc.error, message=exc.message, details=exc.details)
    body = ErrorResponse(error=exc.error, message=exc.message)
    return JSONResponse(status_code=500, content=body.model_dump())


async def listing_cache_exception_handler(request: Request, exc: ListingCacheError):
    """Any other application error."""
    exc.request_id = exc.request_id or get_request_id()
    logger.error(
        f"Listing cache exception: {exc.message}",
        error_type=type(exc).__name__,
        request_id=exc.request_id,
    )
    content = {"success": False, **exc.to_dict()}
    return JSONResponse(status_code=500, content=content)


# ============================================================================
# Application Factory
# ============================================================================


def create_app(settings: Settings | None = None, kv_store: KeyValueStore | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to the global settings)
        kv_store: Store to inject; a RedisClient built from ``settings`` when
            omitted. The lifespan connects it either way.

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Read-through Redis response cache for the listing API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.kv_store = kv_store or RedisClient(settings)

    # Middleware runs in reverse order of registration: request IDs are bound
    # before anything else logs.
    add_error_handling_middleware(app, include_traceback=(settings.app.ENVIRONMENT == "development"))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_REQUEST_ID, HEADER_CACHE],
    )
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(CacheOperationError, cache_operation_exception_handler)
    app.add_exception_handler(ListingCacheError, listing_cache_exception_handler)

    base_path = settings.app.API_BASE_PATH
    app.include_router(health_router, prefix=base_path)
    app.include_router(demo_router, prefix=base_path)
    app.include_router(cache_admin_router, prefix=f"{base_path}{settings.cache.CACHE_ADMIN_PREFIX}")

    @app.get("/", tags=["Root"])
    async def root():
        """API information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": f"{base_path}/health",
        }

    return app


# Create application instance
app = create_app()


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "listing_cache.application.app:app",
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
