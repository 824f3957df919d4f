"""
FastAPI Dependencies

Accessors for the application-level objects created in the lifespan and kept
on ``app.state``. Resolving them per request keeps routes free of module-level
singletons and lets tests inject their own store.

Example:
    @router.get("/stats")
    async def stats(service: AdminServiceDep):
        return await service.get_stats()
"""

from typing import Annotated

from fastapi import Depends, Request

from listing_cache.application.services.cache_admin_service import CacheAdminService
from listing_cache.core.config.settings import Settings, get_settings
from listing_cache.core.exceptions import CacheOperationError
from listing_cache.core.interfaces.cache import KeyValueStore


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with (global settings otherwise)."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_kv_store(request: Request) -> KeyValueStore | None:
    """
    Retrieve the shared key-value store from application state.

    Returns None before the lifespan has run; callers treat that the same as
    an unreachable store.
    """
    return getattr(request.app.state, "kv_store", None)


def get_admin_service(request: Request) -> CacheAdminService:
    """
    Build the admin service around the shared store.

    Raises:
        CacheOperationError: If the application has no store configured
    """
    store = get_kv_store(request)
    if store is None:
        raise CacheOperationError(error="Cache unavailable", message="No key-value store configured")
    return CacheAdminService(store)


# ============================================================================
# TYPE ALIASES
# ============================================================================

SettingsDep = Annotated[Settings, Depends(get_app_settings)]
KVStoreDep = Annotated[KeyValueStore | None, Depends(get_kv_store)]
AdminServiceDep = Annotated[CacheAdminService, Depends(get_admin_service)]
