"""
Application Services Package

Business logic used by the API routes, kept free of HTTP concerns so it can
be tested against a store directly.

- cache_admin_service: inspection and invalidation of cached responses
"""
