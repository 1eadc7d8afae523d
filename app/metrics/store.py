"""
Metrics Store for Dispatch Tracking

Aggregates per-message dispatch outcomes for analysis and reporting.
Uses in-memory storage; production systems should use Prometheus
or a time-series database.

The store is thread-safe using threading.Lock to handle
concurrent requests in FastAPI's async environment.
"""

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field

from app.dispatcher.results import NormalizedResult


@dataclass
class InvocationMetric:
    """
    Individual dispatch metric record.

    Captures the outcome of one capability invocation, including
    every provider failure that occurred before the winner.

    Attributes:
        timestamp: Unix timestamp when the invocation finished
        capability: Capability invoked ('chat', 'image', 'search')
        mode: Request mode label (e.g., 'Web Search')
        provider: Provider that produced the result, None if degraded
        degraded: Whether the degraded default was returned
        failures: (provider, failure kind) pairs in attempt order
        latency_ms: Wall time of the whole chain in milliseconds
    """

    timestamp: float
    capability: str
    mode: str
    provider: str | None
    degraded: bool
    failures: tuple[tuple[str, str], ...]
    latency_ms: float

    @classmethod
    def from_result(
        cls,
        result: NormalizedResult,
        *,
        capability: str,
        mode: str,
        latency_ms: float,
    ) -> "InvocationMetric":
        """Build a metric from a dispatch result."""
        return cls(
            timestamp=time.time(),
            capability=capability,
            mode=mode,
            provider=result.provider,
            degraded=result.degraded,
            failures=tuple((f.provider, f.kind.value) for f in result.failures),
            latency_ms=latency_ms,
        )


@dataclass
class _CapabilityAggregate:
    """Internal aggregate for per-capability metrics."""

    count: int = 0
    degraded: int = 0
    latency_total_ms: float = 0.0

    @property
    def avg_latency_ms(self) -> float:
        return self.latency_total_ms / self.count if self.count else 0.0


@dataclass
class _ProviderAggregate:
    """Internal aggregate for per-provider outcomes."""

    successes: int = 0
    failures: dict[str, int] = field(default_factory=lambda: defaultdict(int))


@dataclass
class AggregatedMetrics:
    """
    Aggregated metrics snapshot for reporting.

    All fields are snapshots captured at a specific moment.
    """

    total_requests: int = 0
    degraded_requests: int = 0
    requests_by_capability: dict[str, _CapabilityAggregate] = field(
        default_factory=dict
    )
    requests_by_mode: dict[str, int] = field(default_factory=dict)
    providers: dict[str, _ProviderAggregate] = field(default_factory=dict)
    latencies: list[float] = field(default_factory=list)


class MetricsStore:
    """
    Thread-safe in-memory metrics storage.

    Stores individual invocation metrics and provides aggregation
    for reporting.

    Example:
        store = MetricsStore()
        store.record(InvocationMetric.from_result(
            result, capability="chat", mode="Default", latency_ms=412.0
        ))
        aggregated = store.get_aggregated()
        print(f"Total requests: {aggregated.total_requests}")
    """

    def __init__(self, max_history: int = 10000):
        """
        Initialize the metrics store.

        Args:
            max_history: Maximum individual metrics to retain.
                         Older metrics are discarded when limit is reached.
                         Aggregates are preserved regardless of this limit.
        """
        self._lock = threading.Lock()
        self._metrics: list[InvocationMetric] = []
        self._max_history = max_history

        self._total_requests: int = 0
        self._degraded_requests: int = 0

        self._by_capability: dict[str, _CapabilityAggregate] = defaultdict(
            _CapabilityAggregate
        )
        self._by_mode: dict[str, int] = defaultdict(int)
        self._by_provider: dict[str, _ProviderAggregate] = defaultdict(
            _ProviderAggregate
        )
        self._latencies: list[float] = []

    def record(self, metric: InvocationMetric) -> None:
        """
        Record a new invocation metric.

        Thread-safe. Updates both raw history and pre-computed aggregates.
        """
        with self._lock:
            self._metrics.append(metric)
            if len(self._metrics) > self._max_history:
                self._metrics = self._metrics[-self._max_history :]

            self._total_requests += 1
            if metric.degraded:
                self._degraded_requests += 1

            cap_agg = self._by_capability[metric.capability]
            cap_agg.count += 1
            cap_agg.latency_total_ms += metric.latency_ms
            if metric.degraded:
                cap_agg.degraded += 1

            self._by_mode[metric.mode] += 1

            for provider, kind in metric.failures:
                self._by_provider[provider].failures[kind] += 1
            if metric.provider is not None:
                self._by_provider[metric.provider].successes += 1

            self._latencies.append(metric.latency_ms)
            if len(self._latencies) > self._max_history:
                self._latencies = self._latencies[-self._max_history :]

    def get_aggregated(self) -> AggregatedMetrics:
        """
        Get current aggregated metrics.

        Thread-safe. The returned object is a copy and safe to use
        outside the lock.
        """
        with self._lock:
            by_capability = {
                name: _CapabilityAggregate(
                    count=agg.count,
                    degraded=agg.degraded,
                    latency_total_ms=agg.latency_total_ms,
                )
                for name, agg in self._by_capability.items()
            }
            providers = {
                name: _ProviderAggregate(
                    successes=agg.successes,
                    failures=dict(agg.failures),
                )
                for name, agg in self._by_provider.items()
            }

            return AggregatedMetrics(
                total_requests=self._total_requests,
                degraded_requests=self._degraded_requests,
                requests_by_capability=by_capability,
                requests_by_mode=dict(self._by_mode),
                providers=providers,
                latencies=list(self._latencies),
            )

    def get_recent(self, count: int = 100) -> list[InvocationMetric]:
        """Get the most recent invocation metrics."""
        with self._lock:
            return list(self._metrics[-count:])

    def reset(self) -> None:
        """
        Reset all metrics.

        Thread-safe. Clears all stored data and aggregates.
        Primarily used for testing.
        """
        with self._lock:
            self._metrics.clear()
            self._total_requests = 0
            self._degraded_requests = 0
            self._by_capability.clear()
            self._by_mode.clear()
            self._by_provider.clear()
            self._latencies.clear()
