"""
Metrics Module: Dispatch Tracking, Storage, and Reporting

Records which provider answered each message, which providers failed
before it (and how), and how often a capability fell back to its
degraded default.

Components:
    MetricsStore: Thread-safe in-memory metrics aggregation
    InvocationMetric: Individual dispatch metric record
    AggregatedMetrics: Pre-computed aggregates for reporting
    MetricsReporter: Generate MetricsResponse for API endpoints

Usage:
    from app.metrics import InvocationMetric, MetricsReporter, MetricsStore

    store = MetricsStore()
    store.record(InvocationMetric.from_result(
        result, capability="search", mode="Web Search", latency_ms=820.5
    ))
    response = MetricsReporter(store).generate_report()
"""

from app.metrics.store import (
    AggregatedMetrics,
    InvocationMetric,
    MetricsStore,
)

from app.metrics.reporter import MetricsReporter


__all__ = [
    # Storage
    "MetricsStore",
    "InvocationMetric",
    "AggregatedMetrics",
    # Reporting
    "MetricsReporter",
]
