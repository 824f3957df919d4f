"""
Cache Module

Redis key-value store adapter and the read-through response cache built on it.
"""

from .redis_client import RedisClient, format_ttl
from .response_cache import ResponseCache, build_cache_key, cache_key_for

__all__ = [
    "RedisClient",
    "ResponseCache",
    "build_cache_key",
    "cache_key_for",
    "format_ttl",
]
