#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

Counters for the read-through response cache:
- Lookups by result (hit, miss, bypass, error)
- Background writes by status (success, skipped, failed)
- Errors by type and stage

These are process-local counters, complementary to the store-wide keyspace
statistics reported by the admin /stats endpoint.

Author: System Architect
Date: 2026-10-18
"""

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, generate_latest

from listing_cache.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

CACHE_LOOKUPS = Counter(
    "listing_cache_lookups_total",
    "Read-through cache lookups by result",
    ["result"],  # hit, miss, bypass, error
)

CACHE_WRITES = Counter(
    "listing_cache_writes_total",
    "Response cache writes by status",
    ["status"],  # success, skipped, failed
)

ERRORS = Counter(
    "listing_cache_errors_total",
    "Errors by type and stage",
    ["error_type", "stage"],
)


class MetricsCollector:
    """
    Thin facade over the module-level Prometheus metrics.

    Usage:
        metrics = get_metrics_collector()
        metrics.record_lookup("hit")
    """

    def record_lookup(self, result: str) -> None:
        CACHE_LOOKUPS.labels(result=result).inc()

    def record_write(self, status: str) -> None:
        CACHE_WRITES.labels(status=status).inc()

    def record_error(self, error_type: str, stage: str) -> None:
        ERRORS.labels(error_type=error_type, stage=stage).inc()

    def get_prometheus_metrics(self) -> bytes:
        """Render all registered metrics in Prometheus text format."""
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        return CONTENT_TYPE_LATEST


_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector (singleton)."""
    global _metrics_collector

    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()

    return _metrics_collector
