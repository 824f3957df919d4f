"""
Cache Administration Service

Operator-facing operations on the response cache: enumerate entries with
their remaining TTL, inspect one entry, delete one entry, flush the store,
and report statistics.

The service sits between the admin routes and the store adapter:

    routes ──► CacheAdminService ──► KeyValueStore
                 │
                 ├── InvalidInputError   → 400 envelope
                 ├── CacheOperationError → 500 envelope
                 └── None (not found)    → 404 envelope

The adapter degrades silently on store failure. Where a degraded answer would
be indistinguishable from a real one (a failed delete, a failed flush, a TTL
lookup), the service turns it into CacheOperationError so operators see the
outage instead of a false success.

Author: System Architect
Date: 2026-10-18
"""

import re
from dataclasses import dataclass

from listing_cache.core.config.constants import (
    DEFAULT_KEY_PATTERN,
    MAX_PATTERN_LENGTH,
    TTL_LABEL_EXPIRED,
    Stage,
)
from listing_cache.core.exceptions import CacheKeyError, CacheOperationError, InvalidInputError
from listing_cache.core.interfaces.cache import CacheEntryDetails, CacheStats, KeyValueStore
from listing_cache.core.logging.logger import get_logger
from listing_cache.infrastructure.cache.redis_client import format_ttl

logger = get_logger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


@dataclass(frozen=True)
class KeyTTL:
    """A cached key and its human readable remaining lifetime."""

    key: str
    ttl: str


def validate_key(key: str | None) -> str:
    """
    Validate a key name taken from a request path.

    Raises:
        InvalidInputError: If the key is missing or blank
    """
    if key is None or not key.strip():
        raise InvalidInputError("Key name is required", details={"key": key})
    return key


def validate_pattern(pattern: str | None) -> str:
    """
    Validate a Redis glob pattern.

    A missing pattern means "everything". Rejected: empty strings, patterns
    longer than MAX_PATTERN_LENGTH, control characters, and a ``[`` that is
    never closed (Redis would silently match nothing).

    Raises:
        InvalidInputError: If the pattern is malformed
    """
    if pattern is None:
        return DEFAULT_KEY_PATTERN
    if not pattern:
        raise InvalidInputError("Pattern must not be empty", details={"pattern": pattern})
    if len(pattern) > MAX_PATTERN_LENGTH:
        raise InvalidInputError(
            f"Pattern exceeds {MAX_PATTERN_LENGTH} characters",
            details={"length": len(pattern)},
        )
    if _CONTROL_CHARS.search(pattern):
        raise InvalidInputError("Pattern contains control characters", details={"pattern": pattern})

    in_class = False
    escaped = False
    for char in pattern:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "[" and not in_class:
            in_class = True
        elif char == "]" and in_class:
            in_class = False
    if in_class:
        raise InvalidInputError("Pattern has an unclosed '['", details={"pattern": pattern})

    return pattern


class CacheAdminService:
    """
    Administration operations over an injected key-value store.

    Usage:
        service = CacheAdminService(request.app.state.kv_store)
        keys = await service.list_keys("cache:/api/*")
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    async def _require_connection(self, error: str) -> None:
        if not await self._store.ensure_connected():
            raise CacheOperationError(error=error, message="Redis not connected")

    async def list_keys(self, pattern: str | None = None) -> list[KeyTTL]:
        """
        List keys matching ``pattern`` with each key's remaining TTL.

        A key that expires between the scan and its TTL lookup is reported as
        "Expired" rather than dropped.
        """
        pattern = validate_pattern(pattern)
        error = "Failed to retrieve cache keys"
        await self._require_connection(error)

        keys = await self._store.list_keys(pattern)
        entries = []
        try:
            for key in keys:
                ttl = await self._store.ttl(key)
                entries.append(KeyTTL(key=key, ttl=format_ttl(ttl, missing_label=TTL_LABEL_EXPIRED)))
        except CacheKeyError as e:
            raise CacheOperationError(error=error, message=e.message, details=e.details) from e

        logger.info("Listed cache keys", stage=Stage.ADMIN, pattern=pattern, count=len(entries))
        return entries

    async def get_stats(self) -> CacheStats:
        """Store-wide statistics snapshot."""
        await self._require_connection("Failed to retrieve cache stats")
        return await self._store.get_stats()

    async def get_key_details(self, key: str | None) -> CacheEntryDetails | None:
        """
        Details of one entry.

        Returns:
            CacheEntryDetails, or None when the key does not exist
        """
        key = validate_key(key)
        await self._require_connection("Failed to retrieve key details")
        return await self._store.get_entry_details(key)

    async def delete_key(self, key: str | None) -> str:
        """
        Delete one entry. Succeeds whether or not the key existed.

        Returns:
            Confirmation message
        """
        key = validate_key(key)
        if not await self._store.delete(key):
            raise CacheOperationError(
                error="Failed to delete key",
                message="Redis delete did not complete",
                details={"key": key},
            )
        logger.info("Deleted cache key", stage=Stage.ADMIN, cache_key=key)
        return f"Key {key} deleted successfully"

    async def clear(self) -> str:
        """
        Flush every key in the store's selected database.

        Returns:
            Confirmation message
        """
        if not await self._store.clear_all():
            raise CacheOperationError(error="Failed to clear cache", message="Redis flush did not complete")
        logger.warning("Cache cleared by operator", stage=Stage.ADMIN)
        return "All cache cleared successfully"
