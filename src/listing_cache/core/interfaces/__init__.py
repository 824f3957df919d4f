from .cache import CacheEntryDetails, CacheStats, KeyValueStore

__all__ = ["CacheEntryDetails", "CacheStats", "KeyValueStore"]
