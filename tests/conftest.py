"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import fnmatch
import math
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import APIRouter
from redis.exceptions import ConnectionError as RedisConnectionError

# ============================================================================
# In-Memory Redis
# ============================================================================


class InMemoryRedis:
    """
    In-memory stand-in for a ``redis.asyncio.Redis`` client.

    Implements the commands the adapter issues, with decode_responses=True
    semantics. Time is a manual clock (``advance``) so expiry is testable
    without sleeping; ``down = True`` makes every command fail the way an
    unreachable server does.
    """

    def __init__(self):
        self.data = {}
        self.expires_at = {}  # key -> clock value at which it expires
        self.now = 0.0
        self.down = False
        self.closed = False
        self.keyspace_hits = 0
        self.keyspace_misses = 0
        self.used_memory_human = "1.05M"
        self.used_memory_peak_human = "2.10M"
        self.commands = []

    # -- test controls -------------------------------------------------------

    def advance(self, seconds):
        self.now += seconds

    def _check(self, command):
        self.commands.append(command)
        if self.down:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    def _expire_if_due(self, key):
        deadline = self.expires_at.get(key)
        if deadline is not None and self.now >= deadline:
            self.data.pop(key, None)
            self.expires_at.pop(key, None)

    def _live_keys(self):
        for key in list(self.data):
            self._expire_if_due(key)
        return list(self.data)

    # -- connection ----------------------------------------------------------

    async def ping(self):
        self._check("PING")
        return True

    async def aclose(self):
        self.closed = True

    # -- strings -------------------------------------------------------------

    async def get(self, key):
        self._check("GET")
        self._expire_if_due(key)
        value = self.data.get(key)
        if value is None:
            self.keyspace_misses += 1
            return None
        self.keyspace_hits += 1
        return value

    async def set(self, key, value, ex=None):
        self._check("SET")
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        self.data[key] = value
        if ex:
            self.expires_at[key] = self.now + ex
        else:
            self.expires_at.pop(key, None)
        return True

    async def delete(self, *keys):
        self._check("DEL")
        removed = 0
        for key in keys:
            self._expire_if_due(key)
            if key in self.data:
                removed += 1
            self.data.pop(key, None)
            self.expires_at.pop(key, None)
        return removed

    async def flushdb(self):
        self._check("FLUSHDB")
        self.data.clear()
        self.expires_at.clear()
        return True

    # -- keyspace ------------------------------------------------------------

    async def scan_iter(self, match=None, count=None):
        self._check("SCAN")
        for key in self._live_keys():
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def ttl(self, key):
        self._check("TTL")
        self._expire_if_due(key)
        if key not in self.data:
            return -2
        if key not in self.expires_at:
            return -1
        return math.ceil(self.expires_at[key] - self.now)

    async def type(self, key):
        self._check("TYPE")
        self._expire_if_due(key)
        value = self.data.get(key)
        if value is None:
            return "none"
        if isinstance(value, str):
            return "string"
        if isinstance(value, dict):
            return "hash"
        if isinstance(value, list):
            return "list"
        if isinstance(value, set):
            return "set"
        return "stream"

    async def hgetall(self, key):
        self._check("HGETALL")
        return dict(self.data.get(key, {}))

    async def lrange(self, key, start, end):
        self._check("LRANGE")
        items = self.data.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]

    async def smembers(self, key):
        self._check("SMEMBERS")
        return set(self.data.get(key, set()))

    async def zrange(self, key, start, end, withscores=False):
        self._check("ZRANGE")
        return []

    # -- server --------------------------------------------------------------

    async def info(self, section=None):
        self._check("INFO")
        if section == "stats":
            return {"keyspace_hits": self.keyspace_hits, "keyspace_misses": self.keyspace_misses}
        if section == "memory":
            return {
                "used_memory_human": self.used_memory_human,
                "used_memory_peak_human": self.used_memory_peak_human,
            }
        return {}

    async def dbsize(self):
        self._check("DBSIZE")
        return len(self._live_keys())


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """Real Settings tuned for tests: one connect attempt, console logs."""
    from listing_cache.core.config.settings import Settings

    return Settings(
        ENVIRONMENT="test",
        REDIS_HOST="localhost",
        REDIS_PORT=6379,
        REDIS_CONNECT_RETRIES=1,
        LOG_FORMAT="console",
        LOG_LEVEL="DEBUG",
        CACHE_ENABLED=True,
        CACHE_DEFAULT_TTL=60,
    )


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def fake_redis():
    """Fresh in-memory Redis for each test."""
    return InMemoryRedis()


@pytest_asyncio.fixture
async def redis_store(test_settings, fake_redis):
    """Connected RedisClient backed by the in-memory Redis."""
    from listing_cache.infrastructure.cache.redis_client import RedisClient

    store = RedisClient(test_settings, client=fake_redis)
    await store.connect()
    yield store
    await store.disconnect()


@pytest.fixture
def mock_kv_store():
    """
    Mock KeyValueStore for isolated testing.

    Defaults describe a connected, empty store.
    """
    from listing_cache.core.interfaces.cache import CacheStats, KeyValueStore

    store = AsyncMock(spec=KeyValueStore)
    store.is_connected = MagicMock(return_value=True)
    store.ensure_connected = AsyncMock(return_value=True)
    store.set_in_background = MagicMock(return_value=None)
    store.get = AsyncMock(return_value=None)
    store.delete = AsyncMock(return_value=True)
    store.clear_all = AsyncMock(return_value=True)
    store.list_keys = AsyncMock(return_value=[])
    store.ttl = AsyncMock(return_value=-2)
    store.get_entry_details = AsyncMock(return_value=None)
    store.get_stats = AsyncMock(return_value=CacheStats())
    return store


# ============================================================================
# Application Fixtures
# ============================================================================


class ResourceCalls:
    """Counts handler calls so tests can tell a cache hit from a live response."""

    def __init__(self):
        self.count = 0


@pytest.fixture
def resource_calls():
    return ResourceCalls()


@pytest.fixture
def build_app(test_settings, fake_redis, resource_calls):
    """
    Factory for an application wired to the in-memory Redis.

    Besides the regular routes, ``GET /resource`` is mounted at the root with a
    60 second response cache and counted in ``resource_calls``.
    """
    from listing_cache.application.api.cache_route import cached_route
    from listing_cache.application.app import create_app
    from listing_cache.infrastructure.cache.redis_client import RedisClient

    async def get_resource():
        resource_calls.count += 1
        return {"resource": "listing", "call": resource_calls.count}

    def _build(settings=None, client=None):
        settings = settings or test_settings
        store = RedisClient(settings, client=client or fake_redis)
        app = create_app(settings, kv_store=store)

        router = APIRouter(route_class=cached_route(60))
        router.add_api_route("/resource", get_resource, methods=["GET", "POST"])
        app.include_router(router)
        return app

    return _build


@pytest.fixture
def client(build_app):
    """TestClient with the lifespan running (store connected)."""
    from fastapi.testclient import TestClient

    app = build_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def wait_for_writes():
    """Block until an app's background cache writes have completed."""

    def _wait(test_client):
        test_client.portal.call(test_client.app.state.kv_store.drain)

    return _wait
