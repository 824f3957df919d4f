"""
Cached Route Class

Mounts the read-through response cache on a router:

    router = APIRouter(route_class=cached_route(ttl_seconds=60))

    @router.get("/properties")
    async def list_properties(): ...

Every route on that router is wrapped by ResponseCache with the router's TTL,
so different mount points can use different TTLs. The wrapper sits around
FastAPI's route handler, which is where dependency resolution and the
endpoint call happen: on a hit neither runs.

The store and settings are looked up on ``request.app.state`` for each
request, so the route class itself holds no connection.
"""

from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Request, Response
from fastapi.routing import APIRoute

from listing_cache.application.api.dependencies import get_app_settings, get_kv_store
from listing_cache.core.config.constants import Stage
from listing_cache.core.logging.logger import get_logger
from listing_cache.infrastructure.cache.response_cache import ResponseCache

logger = get_logger(__name__)


def cached_route(ttl_seconds: int | None = None) -> type[APIRoute]:
    """
    Build an APIRoute subclass that caches responses for ``ttl_seconds``.

    Args:
        ttl_seconds: Entry lifetime; CACHE_DEFAULT_TTL when omitted

    Raises:
        ValueError: If ttl_seconds is not positive
    """
    if ttl_seconds is not None and ttl_seconds <= 0:
        raise ValueError("ttl_seconds must be positive")

    class CachedRoute(APIRoute):
        cache_ttl = ttl_seconds

        def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
            handler = super().get_route_handler()

            async def cached_handler(request: Request) -> Response:
                settings = get_app_settings(request)
                store = get_kv_store(request)

                if store is None or not settings.CACHE_ENABLED:
                    logger.debug(
                        "Response cache inactive",
                        stage=Stage.CACHE_BYPASS,
                        path=request.url.path,
                        enabled=settings.CACHE_ENABLED,
                    )
                    return await handler(request)

                cache = ResponseCache(
                    store,
                    ttl_seconds=self.cache_ttl or settings.CACHE_DEFAULT_TTL,
                    key_prefix=settings.CACHE_KEY_PREFIX,
                )
                return await cache.serve(request, lambda: handler(request))

            return cached_handler

    CachedRoute.__name__ = f"CachedRoute{ttl_seconds or ''}"
    return CachedRoute
