"""
Read-Through Response Cache

Serves idempotent read responses from Redis and populates the cache from the
live handler on a miss.

Request flow:

    GET /api/properties?city=Austin
        │
        ├── key = "cache:/api/properties?city=Austin"  (path as sent, not decoded)
        ├── store.get(key)
        │     ├── hit   → 200 application/json, stored body verbatim, X-Cache: HIT
        │     └── miss  → run handler
        │                   ├── 200 JSON body → store.set_in_background(key, body, ttl)
        │                   └── forward response unchanged, X-Cache: MISS
        └── other methods → handler only, no lookup, no write

Interception is functional: ResponseCache wraps a callable that produces the
handler's Response and inspects the returned object. Nothing on the response
is patched.

The store never sees JSON: values are opaque text. Parsing happens here, once
on read (a corrupt entry is treated as a miss) and once on write (a body that
is not JSON is not cached).

Author: System Architect
Date: 2026-10-18
"""

from collections.abc import Awaitable, Callable
from urllib.parse import quote

import orjson
from fastapi import Request, Response

from listing_cache.core.config.constants import (
    CACHEABLE_METHODS,
    HEADER_CACHE,
    JSON_MEDIA_TYPE,
    CacheResult,
    Stage,
)
from listing_cache.core.interfaces.cache import KeyValueStore
from listing_cache.core.logging.logger import get_logger
from listing_cache.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 60
DEFAULT_KEY_PREFIX = "cache:"


def build_cache_key(path: str, query_string: str = "", prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """
    Derive the cache key for a request target.

    The key is the prefix, the path, and the raw query string when there is
    one, so two requests for the same path and query always share an entry
    and requests that differ only in their query string never do.

    Example:
        >>> build_cache_key("/api/properties", "city=Austin")
        'cache:/api/properties?city=Austin'
    """
    if query_string:
        return f"{prefix}{path}?{query_string}"
    return f"{prefix}{path}"


def cache_key_for(request: Request, prefix: str = DEFAULT_KEY_PREFIX) -> str:
    """
    Cache key of an incoming request, from the request target as sent.

    The path is taken undecoded: ``/items/a%3Fb=1`` and ``/items/a?b=1`` are
    different resources and must not share an entry.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = quote(request.scope["path"])
    query = request.scope.get("query_string", b"").decode("latin-1")
    return build_cache_key(path, query, prefix)


class ResponseCache:
    """
    Read-through cache for one mount point.

    Args:
        store: Key-value store the entries live in
        ttl_seconds: Lifetime of entries written by this instance
        key_prefix: Prefix of every key this instance reads or writes
        metrics: Metrics collector (defaults to the global one)

    Usage:
        cache = ResponseCache(store, ttl_seconds=60)
        response = await cache.serve(request, lambda: handler(request))
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        metrics: MetricsCollector | None = None,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._store = store
        self._ttl = ttl_seconds
        self._prefix = key_prefix
        self._metrics = metrics or get_metrics_collector()

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    async def serve(
        self, request: Request, call_handler: Callable[[], Awaitable[Response]]
    ) -> Response:
        """
        Answer a request from the cache or from the handler.

        Args:
            request: Incoming request
            call_handler: Zero-argument coroutine function producing the
                handler's response; it is not called on a hit
        """
        if request.method not in CACHEABLE_METHODS:
            self._metrics.record_lookup("bypass")
            logger.debug("Cache bypassed for non-GET method", stage=Stage.CACHE_BYPASS, method=request.method)
            return await call_handler()

        key = cache_key_for(request, self._prefix)

        cached = await self._lookup(key)
        if cached is not None:
            self._metrics.record_lookup("hit")
            logger.info("Cache HIT", stage=Stage.CACHE_HIT, cache_key=key)
            return Response(
                content=cached,
                status_code=200,
                media_type=JSON_MEDIA_TYPE,
                headers={HEADER_CACHE: CacheResult.HIT.value},
            )

        self._metrics.record_lookup("miss")
        logger.info("Cache MISS", stage=Stage.CACHE_MISS, cache_key=key)

        response = await call_handler()
        self._store_response(key, response)
        response.headers[HEADER_CACHE] = CacheResult.MISS.value
        return response

    async def _lookup(self, key: str) -> bytes | None:
        """
        Fetch and validate a cached body.

        Returns:
            The stored body as bytes, or None on miss, store failure, or a
            stored value that is not valid JSON
        """
        raw = await self._store.get(key)
        if raw is None:
            return None

        body = raw.encode("utf-8") if isinstance(raw, str) else raw
        try:
            orjson.loads(body)
        except orjson.JSONDecodeError as e:
            self._metrics.record_lookup("error")
            self._metrics.record_error("JSONDecodeError", Stage.CACHE_LOOKUP.value)
            logger.warning(
                "Corrupt cache entry ignored", stage=Stage.CACHE_LOOKUP, cache_key=key, error=str(e)
            )
            return None
        return body

    def _store_response(self, key: str, response: Response) -> None:
        """Schedule a background write of the handler's JSON body, if cacheable."""
        reason = self._skip_reason(response)
        if reason is not None:
            self._metrics.record_write("skipped")
            logger.debug("Response not cached", stage=Stage.CACHE_WRITE, cache_key=key, reason=reason)
            return

        body: bytes = response.body
        try:
            orjson.loads(body)
        except orjson.JSONDecodeError as e:
            self._metrics.record_write("skipped")
            self._metrics.record_error("JSONDecodeError", Stage.CACHE_WRITE.value)
            logger.warning(
                "Response body is not valid JSON, not cached",
                stage=Stage.CACHE_WRITE,
                cache_key=key,
                error=str(e),
            )
            return

        task = self._store.set_in_background(key, body.decode("utf-8"), self._ttl)
        if task is None:
            self._metrics.record_write("skipped")
            return

        def _on_done(t) -> None:
            if not t.cancelled() and t.exception() is None and t.result():
                self._metrics.record_write("success")
                logger.debug("Cached response", stage=Stage.CACHE_WRITE, cache_key=key, ttl=self._ttl)
            else:
                self._metrics.record_write("failed")

        task.add_done_callback(_on_done)

    @staticmethod
    def _skip_reason(response: Response) -> str | None:
        if response.status_code != 200:
            return "status"
        content_type = response.headers.get("content-type", "")
        if not content_type.startswith(JSON_MEDIA_TYPE):
            return "content_type"
        # StreamingResponse and FileResponse have no materialised body
        if not isinstance(getattr(response, "body", None), bytes):
            return "streaming"
        return None
