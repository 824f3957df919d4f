"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the listing response cache.

Author: System Architect
Date: 2026-10-18
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Cache processing stages used as the ``stage`` field of log events.

    Format: {PREFIX}.{SEQUENCE}_{DESCRIPTIVE_NAME}
    """

    INITIALIZATION = "0.0_INITIALIZATION"

    # Store adapter
    REDIS_CONNECT = "REDIS.1_CONNECT"
    REDIS_DISCONNECT = "REDIS.2_DISCONNECT"
    REDIS_GET = "REDIS.GET"
    REDIS_SET = "REDIS.SET"
    REDIS_DEL = "REDIS.DEL"
    REDIS_FLUSH = "REDIS.FLUSH"
    REDIS_SCAN = "REDIS.SCAN"
    REDIS_TTL = "REDIS.TTL"
    REDIS_DETAILS = "REDIS.DETAILS"
    REDIS_STATS = "REDIS.STATS"

    # Read-through middleware
    CACHE_BYPASS = "CACHE.1_BYPASS"
    CACHE_LOOKUP = "CACHE.2_LOOKUP"
    CACHE_HIT = "CACHE.3_HIT"
    CACHE_MISS = "CACHE.4_MISS"
    CACHE_WRITE = "CACHE.5_WRITE"

    # Administration
    ADMIN = "ADMIN"


class CacheResult(str, Enum):
    """Outcome of a read-through lookup, also used as the X-Cache header value."""

    HIT = "HIT"
    MISS = "MISS"


# ============================================================================
# HTTP
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_CACHE = "X-Cache"

# Only these are looked up or cached; FastAPI routes do not answer HEAD
CACHEABLE_METHODS = frozenset({"GET"})

JSON_MEDIA_TYPE = "application/json"

# ============================================================================
# TTL labels (Redis TTL sentinels: -1 no expiry, -2 missing key)
# ============================================================================

TTL_NO_EXPIRY = -1
TTL_MISSING = -2

TTL_LABEL_NO_EXPIRY = "No expiration"
TTL_LABEL_MISSING = "Key does not exist"
TTL_LABEL_EXPIRED = "Expired"

# ============================================================================
# Statistics defaults
# ============================================================================

STATS_UNKNOWN = "N/A"
STATS_ZERO_RATE = "0.00"

# ============================================================================
# Admin input limits
# ============================================================================

MAX_PATTERN_LENGTH = 256
DEFAULT_KEY_PATTERN = "*"
