"""
API Models Package

Pydantic envelopes returned by the cache admin endpoints (admin.py).
"""

from listing_cache.application.api.models.admin import (
    AdminResponse,
    ErrorResponse,
    KeyDetailsResponse,
    KeysResponse,
    KeyTTLModel,
    MessageResponse,
    StatsResponse,
)

__all__ = [
    "AdminResponse",
    "ErrorResponse",
    "KeyDetailsResponse",
    "KeysResponse",
    "KeyTTLModel",
    "MessageResponse",
    "StatsResponse",
]
