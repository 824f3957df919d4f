"""
Unit Tests for the Cache Administration Service

Tests input validation, the not-found outcome, and how degraded store
answers become CacheOperationError for operators.
"""

import pytest

from listing_cache.application.services.cache_admin_service import (
    CacheAdminService,
    KeyTTL,
    validate_key,
    validate_pattern,
)
from listing_cache.core.exceptions import CacheKeyError, CacheOperationError, InvalidInputError


@pytest.mark.unit
class TestValidation:
    """Test key and pattern validation."""

    def test_missing_pattern_means_everything(self):
        assert validate_pattern(None) == "*"

    @pytest.mark.parametrize("pattern", ["*", "cache:*", "cache:/api/properties?city=*", "h[ae]llo", r"a\[b"])
    def test_valid_patterns(self, pattern):
        assert validate_pattern(pattern) == pattern

    @pytest.mark.parametrize(
        "pattern",
        ["", "x" * 257, "cache:\n*", "cache:\x00", "cache:[abc"],
    )
    def test_invalid_patterns(self, pattern):
        with pytest.raises(InvalidInputError):
            validate_pattern(pattern)

    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_invalid_keys(self, key):
        with pytest.raises(InvalidInputError):
            validate_key(key)

    def test_valid_key(self):
        assert validate_key("cache:/resource") == "cache:/resource"


@pytest.mark.unit
class TestCacheAdminService:
    """Test admin operations against the in-memory Redis."""

    @pytest.fixture
    def service(self, redis_store):
        return CacheAdminService(redis_store)

    @pytest.mark.asyncio
    async def test_list_keys_with_ttl_labels(self, service, redis_store):
        await redis_store.set("cache:/a", "1", ttl=60)
        await redis_store.set("cache:/b", "2")

        entries = await service.list_keys()

        assert entries == [KeyTTL(key="cache:/a", ttl="60s"), KeyTTL(key="cache:/b", ttl="No expiration")]

    @pytest.mark.asyncio
    async def test_list_keys_by_pattern(self, service, redis_store):
        await redis_store.set("cache:/a", "1")
        await redis_store.set("session:1", "2")

        entries = await service.list_keys("cache:*")

        assert [entry.key for entry in entries] == ["cache:/a"]

    @pytest.mark.asyncio
    async def test_key_expiring_between_scan_and_ttl(self, mock_kv_store):
        """A key that vanished after SCAN is listed as Expired."""
        mock_kv_store.list_keys.return_value = ["cache:/gone"]
        mock_kv_store.ttl.return_value = -2

        entries = await CacheAdminService(mock_kv_store).list_keys()

        assert entries == [KeyTTL(key="cache:/gone", ttl="Expired")]

    @pytest.mark.asyncio
    async def test_list_keys_rejects_bad_pattern(self, service):
        with pytest.raises(InvalidInputError):
            await service.list_keys("cache:[")

    @pytest.mark.asyncio
    async def test_list_keys_ttl_failure(self, mock_kv_store):
        mock_kv_store.list_keys.return_value = ["cache:/a"]
        mock_kv_store.ttl.side_effect = CacheKeyError("Redis TTL failed")

        with pytest.raises(CacheOperationError) as exc_info:
            await CacheAdminService(mock_kv_store).list_keys()

        assert exc_info.value.error == "Failed to retrieve cache keys"

    @pytest.mark.asyncio
    async def test_store_not_connected(self, mock_kv_store):
        mock_kv_store.ensure_connected.return_value = False
        service = CacheAdminService(mock_kv_store)

        with pytest.raises(CacheOperationError):
            await service.list_keys()
        with pytest.raises(CacheOperationError):
            await service.get_stats()
        with pytest.raises(CacheOperationError):
            await service.get_key_details("cache:/a")

    @pytest.mark.asyncio
    async def test_get_stats(self, service, fake_redis):
        fake_redis.keyspace_hits = 7
        fake_redis.keyspace_misses = 3

        stats = await service.get_stats()

        assert stats.hit_rate == "70.00"

    @pytest.mark.asyncio
    async def test_key_details_not_found_is_none(self, service):
        assert await service.get_key_details("cache:/missing") is None

    @pytest.mark.asyncio
    async def test_key_details(self, service, redis_store):
        await redis_store.set("cache:/a", '{"a":1}', ttl=30)

        details = await service.get_key_details("cache:/a")

        assert details.value == '{"a":1}'
        assert details.ttl == "30s"

    @pytest.mark.asyncio
    async def test_delete_missing_key_succeeds(self, service):
        message = await service.delete_key("cache:/missing")
        assert message == "Key cache:/missing deleted successfully"

    @pytest.mark.asyncio
    async def test_delete_failure(self, service, fake_redis):
        fake_redis.down = True

        with pytest.raises(CacheOperationError) as exc_info:
            await service.delete_key("cache:/a")

        assert exc_info.value.error == "Failed to delete key"

    @pytest.mark.asyncio
    async def test_clear(self, service, redis_store):
        await redis_store.set("cache:/a", "1")

        assert await service.clear() == "All cache cleared successfully"
        assert await redis_store.list_keys() == []

    @pytest.mark.asyncio
    async def test_clear_failure(self, service, fake_redis):
        fake_redis.down = True

        with pytest.raises(CacheOperationError) as exc_info:
            await service.clear()

        assert exc_info.value.error == "Failed to clear cache"
