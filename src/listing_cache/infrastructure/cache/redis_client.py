"""
Redis Store Adapter for the Response Cache

Architecture:
    RedisClient (Public API, degrades on failure)
        ├── ConnectionManager (Connection lifecycle, startup retries)
        ├── OperationExecutor (Command execution, raises CacheKeyError)
        └── HealthMonitor (Health checks and pool metrics)

Failure Policy:
    The cache must never turn a Redis outage into a user-facing error.
    OperationExecutor raises CacheKeyError on any RedisError; RedisClient
    catches it and returns the operation's degraded value:

        get                -> None (miss)
        set / delete       -> False
        clear_all          -> False
        list_keys          -> []
        get_entry_details  -> None
        get_stats          -> zeroed CacheStats

    Two calls are strict: connect() raises CacheConnectionError so the
    application can decide to run without a cache, and ttl() raises
    CacheKeyError so the admin listing can report a failure.

    A failed startup connect is not final. Once connect() has been called,
    any operation that finds the adapter disconnected tries one PING, no
    more often than every REDIS_RECONNECT_INTERVAL seconds, so the cache
    comes back on its own when Redis does.

Author: System Architect
Date: 2026-10-18
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import orjson
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_random_exponential

from listing_cache.core.config.constants import (
    DEFAULT_KEY_PATTERN,
    TTL_LABEL_MISSING,
    TTL_LABEL_NO_EXPIRY,
    TTL_MISSING,
    TTL_NO_EXPIRY,
    Stage,
)
from listing_cache.core.config.settings import Settings, get_settings
from listing_cache.core.exceptions import CacheConnectionError, CacheKeyError
from listing_cache.core.interfaces.cache import CacheEntryDetails, CacheStats
from listing_cache.core.logging.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def format_ttl(ttl: int, missing_label: str = TTL_LABEL_MISSING) -> str:
    """
    Render a raw Redis TTL for operators.

    Args:
        ttl: Raw TTL (-1 no expiry, -2 missing key, otherwise seconds)
        missing_label: Label used for -2

    Returns:
        "No expiration", the missing label, or "<n>s"
    """
    if ttl == TTL_NO_EXPIRY:
        return TTL_LABEL_NO_EXPIRY
    if ttl == TTL_MISSING:
        return missing_label
    return f"{ttl}s"


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# =============================================================================


class ConnectionManager:
    """
    Manages the Redis connection lifecycle and pooling.

    One pool per process: every request shares it, nothing opens a
    per-request connection. A pre-built client can be injected (tests,
    embedding applications); it is used as-is and only pinged on connect.
    """

    def __init__(self, settings: Settings, client: redis.Redis | None = None):
        self._settings = settings
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = client
        self._injected = client is not None
        self._is_connected = False

    def _build_client(self) -> redis.Redis:
        cfg = self._settings.redis

        if cfg.REDIS_URL:
            return redis.Redis.from_url(
                cfg.REDIS_URL,
                max_connections=cfg.REDIS_MAX_CONNECTIONS,
                socket_connect_timeout=cfg.REDIS_SOCKET_CONNECT_TIMEOUT,
                socket_timeout=cfg.REDIS_SOCKET_TIMEOUT,
                health_check_interval=cfg.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )

        self._pool = ConnectionPool(
            host=cfg.REDIS_HOST,
            port=cfg.REDIS_PORT,
            db=cfg.REDIS_DB,
            password=cfg.REDIS_PASSWORD,
            max_connections=cfg.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=cfg.REDIS_SOCKET_CONNECT_TIMEOUT,
            socket_timeout=cfg.REDIS_SOCKET_TIMEOUT,
            health_check_interval=cfg.REDIS_HEALTH_CHECK_INTERVAL,
            decode_responses=True,
        )
        return redis.Redis(connection_pool=self._pool)

    async def connect(self, attempts: int | None = None) -> redis.Redis:
        """
        Establish the connection and verify it with PING.

        STAGE-REDIS.1: Connection establishment

        PING is retried with exponential backoff and jitter up to
        REDIS_CONNECT_RETRIES attempts before giving up.

        Args:
            attempts: Override of REDIS_CONNECT_RETRIES (reconnects use 1)

        Returns:
            redis.Redis: Connected Redis client

        Raises:
            CacheConnectionError: If Redis is unreachable
        """
        if self._is_connected and self._client:
            return self._client

        cfg = self._settings.redis
        if self._client is None:
            self._client = self._build_client()

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(attempts or cfg.REDIS_CONNECT_RETRIES),
                wait=wait_random_exponential(multiplier=0.1, max=1.0),
                retry=retry_if_exception_type((ConnectionError, TimeoutError)),
                reraise=True,
            ):
                with attempt:
                    await self._client.ping()
        except (ConnectionError, TimeoutError) as e:
            logger.error("Failed to connect to Redis", stage=Stage.REDIS_CONNECT, error=str(e))
            raise CacheConnectionError.from_exception(
                e,
                message=f"Failed to connect to Redis: {e}",
                host=cfg.REDIS_HOST,
                port=cfg.REDIS_PORT,
            )

        self._is_connected = True
        logger.info(
            "Redis connected successfully",
            stage=Stage.REDIS_CONNECT,
            host=cfg.REDIS_HOST,
            port=cfg.REDIS_PORT,
            db=cfg.REDIS_DB,
        )
        return self._client

    async def disconnect(self) -> None:
        """
        Close the client and its pool.

        STAGE-REDIS.2: Connection cleanup
        """
        if self._client is not None:
            await self._client.aclose()

        if self._pool is not None:
            await self._pool.disconnect()

        self._is_connected = False
        if not self._injected:
            self._client = None
            self._pool = None

        logger.info("Redis disconnected", stage=Stage.REDIS_DISCONNECT)

    async def ping(self) -> bool:
        try:
            if self._client and self._is_connected:
                await self._client.ping()
                return True
        except RedisError:
            pass
        return False

    def get_client(self) -> redis.Redis | None:
        return self._client if self._is_connected else None

    def get_pool(self) -> ConnectionPool | None:
        if self._pool is not None:
            return self._pool
        return getattr(self._client, "connection_pool", None)

    def is_connected(self) -> bool:
        return self._is_connected


# =============================================================================
# LAYER 2: OPERATION EXECUTOR
# =============================================================================


class OperationExecutor:
    """
    Executes Redis commands with consistent error translation.

    Every RedisError becomes a CacheKeyError carrying the key (or pattern) in
    its details. Deciding whether to degrade is left to the caller.
    """

    def __init__(self, redis_client: redis.Redis):
        self._redis = redis_client

    async def get(self, key: str) -> str | None:
        try:
            return await self._redis.get(key)
        except RedisError as e:
            raise CacheKeyError(message=f"Redis GET failed: {e}", details={"key": key})

    async def set(self, key: str, value: str | bytes, ttl: int | None = None) -> bool:
        """SET with EX when a TTL is given; plain SET keeps the key until deleted."""
        try:
            result = await self._redis.set(key, value, ex=ttl)
            return bool(result)
        except RedisError as e:
            raise CacheKeyError(message=f"Redis SET failed: {e}", details={"key": key, "ttl": ttl})

    async def delete(self, key: str) -> int:
        try:
            return await self._redis.delete(key)
        except RedisError as e:
            raise CacheKeyError(message=f"Redis DELETE failed: {e}", details={"key": key})

    async def flushdb(self) -> bool:
        try:
            return bool(await self._redis.flushdb())
        except RedisError as e:
            raise CacheKeyError(message=f"Redis FLUSHDB failed: {e}")

    async def scan_keys(self, pattern: str) -> list[str]:
        """
        Collect keys matching a glob pattern with incremental SCAN.

        SCAN walks the keyspace in small batches instead of blocking the
        server the way KEYS does on large databases.
        """
        try:
            return [key async for key in self._redis.scan_iter(match=pattern, count=500)]
        except RedisError as e:
            raise CacheKeyError(message=f"Redis SCAN failed: {e}", details={"pattern": pattern})

    async def ttl(self, key: str) -> int:
        try:
            return await self._redis.ttl(key)
        except RedisError as e:
            raise CacheKeyError(message=f"Redis TTL failed: {e}", details={"key": key})

    async def type(self, key: str) -> str:
        try:
            return await self._redis.type(key)
        except RedisError as e:
            raise CacheKeyError(message=f"Redis TYPE failed: {e}", details={"key": key})

    async def read_value(self, key: str, value_type: str) -> str | None:
        """
        Read a key's value as text regardless of its Redis type.

        Strings are returned verbatim; hashes, lists, sets and sorted sets are
        rendered as JSON. Types without a reader (streams, modules) yield None.
        """
        try:
            if value_type == "string":
                return await self._redis.get(key)
            if value_type == "hash":
                data: Any = await self._redis.hgetall(key)
            elif value_type == "list":
                data = await self._redis.lrange(key, 0, -1)
            elif value_type == "set":
                data = sorted(await self._redis.smembers(key))
            elif value_type == "zset":
                data = await self._redis.zrange(key, 0, -1, withscores=True)
            else:
                return None
        except RedisError as e:
            raise CacheKeyError(
                message=f"Redis read failed: {e}", details={"key": key, "type": value_type}
            )
        return orjson.dumps(data).decode()

    async def info(self, section: str) -> dict[str, Any]:
        try:
            return await self._redis.info(section)
        except RedisError as e:
            raise CacheKeyError(message=f"Redis INFO failed: {e}", details={"section": section})

    async def dbsize(self) -> int:
        try:
            return await self._redis.dbsize()
        except RedisError as e:
            raise CacheKeyError(message=f"Redis DBSIZE failed: {e}")


# =============================================================================
# LAYER 3: HEALTH MONITORING
# =============================================================================


class HealthMonitor:
    """Health checks and connection pool metrics."""

    def __init__(self, connection_manager: ConnectionManager, settings: Settings):
        self._conn_mgr = connection_manager
        self._settings = settings

    async def health_check(self) -> dict[str, Any]:
        """
        Perform a health check on the Redis connection.

        Returns:
            Dict with status ("healthy" | "unhealthy"), connectivity,
            ping latency and pool size
        """
        health: dict[str, Any] = {
            "status": "healthy",
            "connected": self._conn_mgr.is_connected(),
            "host": self._settings.redis.REDIS_HOST,
            "port": self._settings.redis.REDIS_PORT,
            "pool_size": 0,
            "ping_latency_ms": None,
        }

        client = self._conn_mgr.get_client()
        if client is None:
            health["status"] = "unhealthy"
            health["error"] = "Client not connected"
            return health

        try:
            start = time.perf_counter()
            await client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except RedisError as e:
            health["status"] = "unhealthy"
            health["error"] = str(e)
            return health

        pool = self._conn_mgr.get_pool()
        if pool is not None:
            health["pool_size"] = getattr(pool, "max_connections", 0)

        return health


# =============================================================================
# LAYER 4: PUBLIC API
# =============================================================================


class RedisClient:
    """
    Failure-tolerant Redis adapter shared by the response cache and the
    administration API.

    Usage:
        client = RedisClient()
        await client.connect()

        await client.set("cache:/api/properties", payload, ttl=60)
        value = await client.get("cache:/api/properties")

        await client.disconnect()

    The instance is created once at startup and injected where needed
    (``app.state.kv_store``). It holds no cached data of its own; the only
    local state is the connection and the set of in-flight background writes.
    """

    def __init__(self, settings: Settings | None = None, client: redis.Redis | None = None):
        """
        Initialize the adapter.

        Args:
            settings: Application settings (defaults to the global settings)
            client: Optional pre-built redis.asyncio client to use instead of
                building a pool from settings
        """
        self._settings = settings or get_settings()
        self._conn_mgr = ConnectionManager(self._settings, client)
        self._executor: OperationExecutor | None = None
        self._health_monitor = HealthMonitor(self._conn_mgr, self._settings)
        self._background_tasks: set[asyncio.Task] = set()
        # Lazy reconnects are allowed between connect() and disconnect()
        self._reconnect_enabled = False
        self._next_reconnect_at = 0.0

    async def connect(self) -> None:
        """
        Establish connection to Redis.

        A failure here does not end the adapter's life: later operations
        retry the connection, at most once per REDIS_RECONNECT_INTERVAL.

        Raises:
            CacheConnectionError: If Redis is unreachable after retries
        """
        self._reconnect_enabled = True
        try:
            client = await self._conn_mgr.connect()
        except CacheConnectionError:
            self._next_reconnect_at = time.monotonic() + self._settings.redis.REDIS_RECONNECT_INTERVAL
            raise
        self._executor = OperationExecutor(client)

    async def ensure_connected(self) -> bool:
        """
        Return True when connected, reconnecting first if a retry is due.

        Never raises. Only one reconnect attempt is made per interval, however
        many requests arrive meanwhile.
        """
        if self._executor is not None:
            return True
        if not self._reconnect_enabled or time.monotonic() < self._next_reconnect_at:
            return False

        self._next_reconnect_at = time.monotonic() + self._settings.redis.REDIS_RECONNECT_INTERVAL
        try:
            client = await self._conn_mgr.connect(attempts=1)
        except CacheConnectionError:
            return False

        self._executor = OperationExecutor(client)
        logger.info("Redis connection recovered", stage=Stage.REDIS_CONNECT)
        return True

    async def disconnect(self) -> None:
        """Wait for pending background writes, then close the connection."""
        self._reconnect_enabled = False
        await self.drain()
        await self._conn_mgr.disconnect()
        self._executor = None

    def is_connected(self) -> bool:
        return self._executor is not None and self._conn_mgr.is_connected()

    async def ping(self) -> bool:
        return await self._conn_mgr.ping()

    async def health_check(self) -> dict[str, Any]:
        await self.ensure_connected()
        return await self._health_monitor.health_check()

    async def _run(
        self,
        stage: Stage,
        operation: Callable[[OperationExecutor], Awaitable[T]],
        default: T,
        **context: Any,
    ) -> T:
        """Run an executor call, mapping any store failure to ``default``."""
        if not await self.ensure_connected():
            logger.debug("Redis not connected, cache operation skipped", stage=stage, **context)
            return default
        try:
            return await operation(self._executor)
        except CacheKeyError as e:
            logger.warning("Redis operation failed, degrading", stage=stage, error=e.message, **context)
            return default

    # -------------------------------------------------------------------------
    # Entry operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """Get a value; None on miss or when Redis is unavailable."""
        return await self._run(Stage.REDIS_GET, lambda ex: ex.get(key), None, key=key)

    async def set(self, key: str, value: str | bytes, ttl: int | None = None) -> bool:
        """
        Store a value, optionally expiring after ``ttl`` seconds.

        Writes are best effort: a failure is logged and reported as False,
        never raised.
        """
        return await self._run(Stage.REDIS_SET, lambda ex: ex.set(key, value, ttl), False, key=key, ttl=ttl)

    def set_in_background(
        self, key: str, value: str | bytes, ttl: int | None = None
    ) -> asyncio.Task | None:
        """
        Schedule a write without waiting for it.

        The task is referenced by the adapter until it completes, so it runs
        to completion even if the request that scheduled it is gone.

        Returns:
            The scheduled task, or None when Redis is not connected
        """
        if not self.is_connected():
            logger.debug("Redis not connected, background write skipped", stage=Stage.REDIS_SET, key=key)
            return None

        task = asyncio.create_task(self.set(key, value, ttl))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every scheduled background write has finished."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    @property
    def pending_writes(self) -> int:
        return len(self._background_tasks)

    async def delete(self, key: str) -> bool:
        """
        Delete a key. Deleting a missing key succeeds.

        Returns:
            True if the command went through, False if Redis failed
        """

        async def _delete(ex: OperationExecutor) -> bool:
            await ex.delete(key)
            return True

        return await self._run(Stage.REDIS_DEL, _delete, False, key=key)

    async def clear_all(self) -> bool:
        """
        Remove EVERY key in the selected Redis database (FLUSHDB).

        This is not limited to response cache keys: anything else stored in
        the same database is deleted too. Point the cache at a dedicated
        database (REDIS_DB) when Redis is shared.
        """
        cleared = await self._run(Stage.REDIS_FLUSH, lambda ex: ex.flushdb(), False)
        if cleared:
            logger.info("All cache cleared", stage=Stage.REDIS_FLUSH)
        return cleared

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    async def list_keys(self, pattern: str = DEFAULT_KEY_PATTERN) -> list[str]:
        """List keys matching a glob pattern, sorted; [] when Redis fails."""
        keys = await self._run(Stage.REDIS_SCAN, lambda ex: ex.scan_keys(pattern), [], pattern=pattern)
        return sorted(keys)

    async def ttl(self, key: str) -> int:
        """
        Raw TTL of a key.

        Returns:
            Seconds remaining, -1 if the key never expires, -2 if it is missing

        Raises:
            CacheKeyError: If Redis is unavailable or the command fails
        """
        if not await self.ensure_connected():
            raise CacheKeyError(message="Redis not connected", details={"key": key})
        try:
            return await self._executor.ttl(key)
        except CacheKeyError as e:
            logger.error("Redis TTL failed", stage=Stage.REDIS_TTL, key=key, error=e.message)
            raise

    async def get_entry_details(self, key: str) -> CacheEntryDetails | None:
        """
        Inspect a single key.

        Returns:
            CacheEntryDetails, or None if the key does not exist or the
            lookup failed
        """

        async def _details(ex: OperationExecutor) -> CacheEntryDetails | None:
            value_type = await ex.type(key)
            if value_type == "none":
                return None
            ttl = await ex.ttl(key)
            value = await ex.read_value(key, value_type)
            return CacheEntryDetails(
                key=key,
                value=value,
                ttl=format_ttl(ttl),
                type=value_type,
                size=len(value.encode("utf-8")) if value else 0,
            )

        return await self._run(Stage.REDIS_DETAILS, _details, None, key=key)

    async def get_stats(self) -> CacheStats:
        """
        Aggregate statistics from INFO stats, INFO memory and DBSIZE.

        Returns:
            CacheStats snapshot; all zeros / "N/A" when Redis fails
        """

        async def _stats(ex: OperationExecutor) -> CacheStats:
            stats = await ex.info("stats")
            memory = await ex.info("memory")
            total_keys = await ex.dbsize()

            hits = int(stats.get("keyspace_hits", 0))
            misses = int(stats.get("keyspace_misses", 0))
            defaults = CacheStats()

            return CacheStats(
                total_keys=total_keys,
                hits=hits,
                misses=misses,
                hit_rate=CacheStats.compute_hit_rate(hits, misses),
                memory_used=str(memory.get("used_memory_human", defaults.memory_used)),
                memory_peak=str(memory.get("used_memory_peak_human", defaults.memory_peak)),
            )

        return await self._run(Stage.REDIS_STATS, _stats, CacheStats())
