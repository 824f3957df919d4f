"""
Cache-Related Exceptions

All exceptions related to the Redis-backed response cache.

Author: System Architect
Date: 2026-10-18
"""

from listing_cache.core.exceptions.base import ListingCacheError


class CacheError(ListingCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to the cache (Redis).

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port/URL configuration
    - Authentication failure
    """
    pass


class CacheKeyError(CacheError):
    """
    Raised when a strict per-key operation fails.

    Only raised by adapter calls that are documented as strict (TTL lookup);
    every other adapter operation degrades instead of raising.
    """
    pass


class CacheOperationError(CacheError):
    """
    Raised by the administration service when a store operation fails.

    Attributes:
        error: Human-readable summary shown to operators
            (e.g. "Failed to retrieve cache keys")
    """

    def __init__(self, error: str, message: str, **kwargs):
        self.error = error
        super().__init__(message, **kwargs)

    def to_dict(self):
        data = super().to_dict()
        data["error"] = self.error
        return data
