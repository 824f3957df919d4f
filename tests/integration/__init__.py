"""
Integration tests.

Run the whole application (lifespan, middleware, cached routes, admin API)
against the in-memory Redis from conftest.
"""
