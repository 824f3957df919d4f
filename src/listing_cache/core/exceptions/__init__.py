"""
Exception Module

Structured exception hierarchy for the listing response cache.

Module Structure:
-----------------
- **base.py**: ListingCacheError base class
- **cache.py**: Cache-related exceptions (Redis connection, key operations, admin failures)
- **validation.py**: Administrative input validation exceptions

Usage:
------
```python
from listing_cache.core.exceptions import CacheConnectionError, InvalidInputError
```
"""

from listing_cache.core.exceptions.base import ListingCacheError
from listing_cache.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheOperationError,
)
from listing_cache.core.exceptions.validation import InvalidInputError, ValidationError

__all__ = [
    # Base
    "ListingCacheError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheOperationError",
    # Validation
    "ValidationError",
    "InvalidInputError",
]
