"""
Prometheus metrics collection for catalog-pipeline

This module provides metrics instrumentation for monitoring
catalog transformations, cache decisions, and persistence health.
"""
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# REQUEST METRICS
# =======================

# Transform requests by chosen strategy
transform_requests_total = Counter(
    name="catalog_transform_requests_total",
    documentation="Total number of transform requests by resolved strategy",
    labelnames=["source_type", "strategy"],  # strategy: json_direct, reuse_cached, retransform_elided, field_mapped, fresh
    registry=REGISTRY,
)

# End-to-end request duration
request_duration_seconds = Histogram(
    name="catalog_request_duration_seconds",
    documentation="Time spent serving a catalog request in seconds",
    labelnames=["endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

# =======================
# TRANSFORM METRICS
# =======================

# Transforms executed against source content
transforms_executed_total = Counter(
    name="catalog_transforms_executed_total",
    documentation="Total number of transformations run against source content",
    labelnames=["source_type", "mode"],  # mode: json_only, generic
    registry=REGISTRY,
)

# Records materialized per transform
records_materialized = Histogram(
    name="catalog_records_materialized",
    documentation="Number of records materialized in memory per transformation",
    labelnames=["source_type"],
    buckets=[1, 10, 100, 500, 1000, 5000, 10000, 50000, 100000],
    registry=REGISTRY,
)

# Transform duration
transform_duration_seconds = Histogram(
    name="catalog_transform_duration_seconds",
    documentation="Time spent transforming source content in seconds",
    labelnames=["source_type"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

# Schema re-inference on reused catalogs
schema_reinference_total = Counter(
    name="catalog_schema_reinference_total",
    documentation="Total number of schema re-inferences over persisted records",
    labelnames=["source_type"],
    registry=REGISTRY,
)

# =======================
# PERSISTENCE METRICS
# =======================

# Persistence writes by outcome
persistence_writes_total = Counter(
    name="catalog_persistence_writes_total",
    documentation="Total number of persisted-catalog writes",
    labelnames=["reason", "status"],  # status: success, failure
    registry=REGISTRY,
)

# Metadata-only (records elided) writes
elided_persists_total = Counter(
    name="catalog_elided_persists_total",
    documentation="Total number of catalogs persisted without records",
    labelnames=["source_type"],
    registry=REGISTRY,
)

# =======================
# ERROR METRICS
# =======================

errors_total = Counter(
    name="catalog_errors_total",
    documentation="Total number of errors",
    labelnames=["error_type", "component"],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    """Content type for Prometheus metrics"""
    return CONTENT_TYPE_LATEST


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(transform_duration_seconds, source_type="filesystem"):
            # do work
            pass
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        self.timer = self.histogram.labels(**self.labels).time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    counter.labels(**labels).inc(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    """
    Observe a value in a histogram metric

    Args:
        histogram: Prometheus Histogram metric
        value: Value to observe
        **labels: Label values for the metric
    """
    histogram.labels(**labels).observe(value)


def record_error(error_type: str, component: str) -> None:
    """Record an error for a pipeline component."""
    increment_counter(errors_total, 1, error_type=error_type, component=component)
