"""
Unit Tests for Configuration Settings

Tests the settings loading, validation, and default values.
"""

import pytest
from pydantic import ValidationError

from listing_cache.core.config.settings import Settings, get_settings, reload_settings


@pytest.mark.unit
class TestSettingsDefaults:
    """Test default values of every settings group."""

    def test_cache_settings_have_valid_defaults(self, monkeypatch):
        """Response cache defaults: enabled, 60 second TTL, cache: prefix."""
        for name in ("CACHE_ENABLED", "CACHE_DEFAULT_TTL", "CACHE_KEY_PREFIX", "CACHE_ADMIN_PREFIX"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)

        assert settings.cache.CACHE_ENABLED is True
        assert settings.cache.CACHE_DEFAULT_TTL == 60
        assert settings.cache.CACHE_KEY_PREFIX == "cache:"
        assert settings.cache.CACHE_ADMIN_PREFIX == "/redis"

    def test_redis_settings_have_valid_defaults(self, monkeypatch):
        """Test that Redis settings have reasonable defaults."""
        for name in ("REDIS_URL", "REDIS_HOST", "REDIS_PORT", "REDIS_DB", "REDIS_CONNECT_RETRIES"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)

        assert settings.redis.REDIS_URL is None
        assert settings.redis.REDIS_HOST == "localhost"
        assert settings.redis.REDIS_PORT == 6379
        assert settings.redis.REDIS_DB == 0
        assert settings.redis.REDIS_CONNECT_RETRIES >= 1

    def test_app_settings_have_valid_defaults(self, monkeypatch):
        """Test that app settings have reasonable defaults."""
        monkeypatch.delenv("API_BASE_PATH", raising=False)
        settings = Settings(_env_file=None)

        assert len(settings.app.APP_NAME) > 0
        assert settings.app.API_BASE_PATH == "/api"
        assert settings.app.ENVIRONMENT in ["development", "staging", "production", "test"]


@pytest.mark.unit
class TestSettingsFromEnvironment:
    """Test environment variable loading and validation."""

    def test_environment_overrides_defaults(self, monkeypatch):
        """Environment variables feed both flat fields and nested views."""
        monkeypatch.setenv("REDIS_URL", "redis://cache.internal:6380/2")
        monkeypatch.setenv("CACHE_DEFAULT_TTL", "120")
        monkeypatch.setenv("CACHE_ENABLED", "false")

        settings = Settings(_env_file=None)

        assert settings.REDIS_URL == "redis://cache.internal:6380/2"
        assert settings.redis.REDIS_URL == "redis://cache.internal:6380/2"
        assert settings.cache.CACHE_DEFAULT_TTL == 120
        assert settings.cache.CACHE_ENABLED is False

    def test_log_level_is_normalised(self):
        """Lower-case log levels are accepted and upper-cased."""
        settings = Settings(_env_file=None, LOG_LEVEL="debug")
        assert settings.logging.LOG_LEVEL == "DEBUG"

    def test_invalid_log_level_rejected(self):
        """Unknown log levels fail fast."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, LOG_LEVEL="VERBOSE")

    def test_non_positive_ttl_rejected(self):
        """A TTL of zero would make every write a no-op."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, CACHE_DEFAULT_TTL=0)


@pytest.mark.unit
class TestSettingsSingleton:
    """Test the global settings accessor."""

    def test_get_settings_returns_same_instance(self):
        assert get_settings() is get_settings()

    def test_reload_settings_replaces_instance(self):
        """reload_settings() builds a fresh instance that get_settings() then returns."""
        before = get_settings()
        after = reload_settings()

        assert after is not before
        assert get_settings() is after
