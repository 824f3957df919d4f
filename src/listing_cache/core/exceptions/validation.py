"""
Validation Exceptions

All exceptions related to request validation

Author: System Architect
Date: 2026-10-18
"""

from listing_cache.core.exceptions.base import ListingCacheError


class ValidationError(ListingCacheError):
    """
    Raised when request validation fails.

    This is the base class for all validation-related errors.
    """
    pass


class InvalidInputError(ValidationError):
    """
    Raised when administrative input validation fails.

    Common causes:
    - Empty key name
    - Key pattern too long
    - Control characters in a pattern
    - Unbalanced character class in a glob pattern
    """
    pass
