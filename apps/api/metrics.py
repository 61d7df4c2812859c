from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import Counter, Gauge, Histogram

from core.health import HealthResult
from core.metrics import MetricsRegistry

PROBE_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)


@dataclass
class ApiMetrics:
    request_count: Counter
    request_latency: Histogram
    dependency_health: Gauge
    probe_latency: Histogram

    def observe_probe(self, dependency: str, result: HealthResult, duration: float) -> None:
        self.dependency_health.labels(dependency.lower()).set(1 if result.status else 0)
        self.probe_latency.labels(dependency.lower()).observe(duration)


def register_api_metrics(registry: MetricsRegistry) -> ApiMetrics:
    return ApiMetrics(
        request_count=registry.counter(
            "http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
        ),
        request_latency=registry.histogram(
            "http_request_duration_seconds", "HTTP request latency in seconds", ["endpoint"]
        ),
        dependency_health=registry.gauge(
            "dependency_health_status", "Result of the last dependency probe (1 healthy, 0 failed)", ["dependency"]
        ),
        probe_latency=registry.histogram(
            "dependency_probe_duration_seconds",
            "Dependency probe round-trip time in seconds",
            ["dependency"],
            buckets=PROBE_BUCKETS,
        ),
    )
