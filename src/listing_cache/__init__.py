"""
listing_cache

Read-through Redis response cache for the real-estate listing API, with an
administration surface for inspecting and invalidating cached responses.
"""

__version__ = "1.0.0"
