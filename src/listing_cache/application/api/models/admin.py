"""
Cache Admin API Response Models

Every admin endpoint answers with the same envelope: a ``success`` flag plus
either the requested data or ``error``/``message``. One result-parsing path
on the client handles every operation.

    {"success": true,  "count": 2, "keys": [...]}
    {"success": false, "error": "Key not found"}
    {"success": false, "error": "Failed to clear cache", "message": "..."}
"""

from pydantic import BaseModel, Field

from listing_cache.core.interfaces.cache import CacheEntryDetails, CacheStats


class AdminResponse(BaseModel):
    """Base envelope shared by all admin responses."""

    success: bool = Field(default=True, description="Whether the operation succeeded")


class KeyTTLModel(BaseModel):
    key: str = Field(..., description="Full cache key")
    ttl: str = Field(..., description='Remaining lifetime ("42s", "No expiration", "Expired")')


class KeysResponse(AdminResponse):
    """Response for GET /keys."""

    count: int = Field(..., ge=0, description="Number of keys returned")
    keys: list[KeyTTLModel] = Field(default_factory=list)


class StatsResponse(AdminResponse):
    """
    Response for GET /stats.

    ``stats`` keeps the camelCase field names of CacheStats
    (totalKeys, hitRate, memoryUsed, ...).
    """

    stats: CacheStats


class KeyDetailsResponse(AdminResponse):
    """Response for GET /key/{key}."""

    details: CacheEntryDetails


class MessageResponse(AdminResponse):
    """Response for DELETE /key/{key} and DELETE /clear."""

    message: str


class ErrorResponse(AdminResponse):
    """Failure envelope for 400, 404 and 500 answers."""

    success: bool = False
    error: str = Field(..., description="Human readable summary")
    message: str | None = Field(default=None, description="Machine detail of the failure")
