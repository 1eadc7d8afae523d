"""
Metrics Reporter for API Responses

Transforms raw aggregated metrics into structured API responses
with computed averages.

The reporter bridges the internal metrics representation to the
Pydantic schemas used by the REST API.
"""

from app.metrics.store import MetricsStore
from app.schemas.chat import CapabilityMetrics, MetricsResponse, ProviderMetrics


def _avg(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class MetricsReporter:
    """
    Generate metrics reports from aggregated data.

    Example:
        reporter = MetricsReporter(store)
        response = reporter.generate_report()
        return response  # Ready for JSON serialization
    """

    def __init__(self, store: MetricsStore):
        self._store = store

    def generate_report(self) -> MetricsResponse:
        """
        Generate a complete metrics report.

        Returns:
            MetricsResponse ready for API serialization
        """
        agg = self._store.get_aggregated()

        capabilities: dict[str, CapabilityMetrics] = {}
        for name, cap_data in agg.requests_by_capability.items():
            capabilities[name] = CapabilityMetrics(
                capability=name,
                request_count=cap_data.count,
                degraded_count=cap_data.degraded,
                avg_latency_ms=round(cap_data.avg_latency_ms, 2),
            )

        providers: dict[str, ProviderMetrics] = {}
        for name, provider_data in agg.providers.items():
            providers[name] = ProviderMetrics(
                provider=name,
                successes=provider_data.successes,
                failures=dict(provider_data.failures),
            )

        return MetricsResponse(
            total_requests=agg.total_requests,
            degraded_requests=agg.degraded_requests,
            requests_by_capability=capabilities,
            requests_by_mode=dict(agg.requests_by_mode),
            providers=providers,
            avg_latency_ms=round(_avg(agg.latencies), 2),
        )

    def get_provider_failure_rates(self) -> dict[str, float]:
        """
        Get the failure percentage of each provider.

        Returns:
            Dictionary mapping provider names to failed attempts as a
            percentage of all attempts
        """
        agg = self._store.get_aggregated()

        rates: dict[str, float] = {}
        for name, provider_data in agg.providers.items():
            failed = sum(provider_data.failures.values())
            attempts = failed + provider_data.successes
            rates[name] = round(failed / attempts * 100, 1) if attempts else 0.0
        return rates
