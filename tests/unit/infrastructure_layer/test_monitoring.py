"""
Unit Tests for Monitoring

Tests the Prometheus metrics collector.
"""

import pytest
from prometheus_client import REGISTRY

from listing_cache.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.unit
class TestMetricsCollector:
    """Test counter updates and exposition."""

    def test_singleton(self):
        assert get_metrics_collector() is get_metrics_collector()

    def test_record_lookup_increments_counter(self):
        before = sample("listing_cache_lookups_total", result="hit")
        MetricsCollector().record_lookup("hit")
        assert sample("listing_cache_lookups_total", result="hit") == before + 1

    def test_record_write_increments_counter(self):
        before = sample("listing_cache_writes_total", status="failed")
        MetricsCollector().record_write("failed")
        assert sample("listing_cache_writes_total", status="failed") == before + 1

    def test_record_error_increments_counter(self):
        labels = {"error_type": "JSONDecodeError", "stage": "CACHE.2_LOOKUP"}
        before = sample("listing_cache_errors_total", **labels)
        MetricsCollector().record_error(**labels)
        assert sample("listing_cache_errors_total", **labels) == before + 1

    def test_prometheus_exposition(self):
        collector = MetricsCollector()
        collector.record_lookup("miss")

        text = collector.get_prometheus_metrics().decode("utf-8")

        assert "listing_cache_lookups_total" in text
        assert collector.get_content_type().startswith("text/plain")
