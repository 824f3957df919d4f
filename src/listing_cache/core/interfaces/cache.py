"""
Key-Value Store Protocol

This module defines the protocol the response cache and the administration
service depend on, together with the value objects it returns.

Architectural Decision: Protocol-based abstraction
- The middleware and admin service receive a store instance explicitly
- Tests can substitute any object with the same surface
- Values are opaque text; serialization stays at the HTTP boundary

Author: System Architect
Date: 2026-10-18
"""

import asyncio
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from listing_cache.core.config.constants import STATS_UNKNOWN, STATS_ZERO_RATE


class CacheStats(BaseModel):
    """
    Point-in-time snapshot of store-wide cache statistics.

    Serialized with camelCase keys (totalKeys, hitRate, ...) for the admin API.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_keys: int = Field(default=0, ge=0, description="Number of keys in the selected database")
    hits: int = Field(default=0, ge=0, description="Cumulative keyspace hits")
    misses: int = Field(default=0, ge=0, description="Cumulative keyspace misses")
    hit_rate: str = Field(default=STATS_ZERO_RATE, description="Hit percentage with two decimals")
    memory_used: str = Field(default=STATS_UNKNOWN, description="Human readable memory in use")
    memory_peak: str = Field(default=STATS_UNKNOWN, description="Human readable peak memory")

    @staticmethod
    def compute_hit_rate(hits: int, misses: int) -> str:
        """
        Format hits / (hits + misses) as a percentage string.

        Returns "0.00" when there has been no activity yet.

        Example:
            >>> CacheStats.compute_hit_rate(7, 3)
            '70.00'
        """
        total = hits + misses
        if total <= 0:
            return STATS_ZERO_RATE
        return f"{hits / total * 100:.2f}"


class CacheEntryDetails(BaseModel):
    """Inspection view of a single stored entry."""

    key: str
    value: str | None = None
    ttl: str
    type: str
    size: int = Field(default=0, ge=0, description="UTF-8 byte length of the value")


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Protocol defining the interface of the cache backing store.

    Every method except ``connect`` and ``ttl`` degrades instead of raising:
    reads return a miss/empty value and writes report False.

    Implementations:
    - RedisClient: production Redis-backed store
    """

    async def connect(self) -> None:
        """
        Establish connection to the store.

        Raises:
            CacheConnectionError: If connection fails
        """
        ...

    async def disconnect(self) -> None:
        ...

    def is_connected(self) -> bool:
        ...

    async def ensure_connected(self) -> bool:
        """Connected state, after a reconnect attempt if one is due."""
        ...

    async def ping(self) -> bool:
        ...

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None on miss or store failure."""
        ...

    async def set(self, key: str, value: str | bytes, ttl: int | None = None) -> bool:
        """Store a value; with ``ttl`` it expires after that many seconds."""
        ...

    def set_in_background(
        self, key: str, value: str | bytes, ttl: int | None = None
    ) -> asyncio.Task | None:
        """Schedule a write that outlives the calling request."""
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def clear_all(self) -> bool:
        ...

    async def list_keys(self, pattern: str = "*") -> list[str]:
        ...

    async def ttl(self, key: str) -> int:
        """
        Raw TTL of a key (-1 no expiry, -2 missing).

        Raises:
            CacheKeyError: If the lookup fails
        """
        ...

    async def get_entry_details(self, key: str) -> CacheEntryDetails | None:
        ...

    async def get_stats(self) -> CacheStats:
        ...

    async def health_check(self) -> dict[str, Any]:
        ...
