"""
Core Module

Foundational components: configuration, logging, exceptions, and the
key-value store protocol.
"""

from .exceptions import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheOperationError,
    InvalidInputError,
    ListingCacheError,
    ValidationError,
)
from .logging import (
    clear_request_id,
    get_logger,
    get_request_id,
    set_request_id,
    setup_logging,
)

__all__ = [
    "CacheConnectionError",
    "CacheError",
    "CacheKeyError",
    "CacheOperationError",
    "InvalidInputError",
    "ListingCacheError",
    "ValidationError",
    "clear_request_id",
    "get_logger",
    "get_request_id",
    "set_request_id",
    "setup_logging",
]
