from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Sequence, Tuple, Union

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from prometheus_client.gc_collector import GCCollector
from prometheus_client.metrics import MetricWrapperBase
from prometheus_client.platform_collector import PlatformCollector
from prometheus_client.registry import Collector

from core.errors import MetricRegistrationError, RegistryStateError
from core.logging import log_event
from core.metrics.process import ProcessMetricsCollector

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"
EVENT_LOOP_LAG_METRIC = "process_event_loop_lag_seconds"


class MetricKind(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


_METRIC_TYPES = {
    MetricKind.COUNTER: Counter,
    MetricKind.GAUGE: Gauge,
    MetricKind.HISTOGRAM: Histogram,
}


@dataclass(frozen=True)
class _Registration:
    kind: MetricKind
    labelnames: Tuple[str, ...]
    metric: MetricWrapperBase


class GuardedCollector(Collector):
    """Wraps a collector so that a failing scrape drops its metrics instead of the whole snapshot."""

    def __init__(self, collector: Collector, name: str) -> None:
        self._collector = collector
        self._name = name

    def describe(self):
        # Names are taken from one scrape so clashes with later registrations are detected.
        return self.collect()

    def collect(self):
        try:
            return list(self._collector.collect())
        except Exception as exc:
            logger.debug("Collector omitted from snapshot", extra={"collector": self._name, "reason": str(exc)})
            return []


class MetricsRegistry:
    """Process-wide collection of metrics, created once at startup and handed to the HTTP layer.

    ``initialize`` registers the built-in process and runtime collectors and must be
    called exactly once before ``serialize``. Application metrics are declared through
    ``register``, which is idempotent for a repeated name of the same kind and raises
    :class:`MetricRegistrationError` when the kind or label set conflicts.
    """

    def __init__(self, namespace: str = "", collect_process_metrics: bool = True) -> None:
        self._registry = CollectorRegistry()
        self._namespace = namespace
        self._collect_process_metrics = collect_process_metrics
        self._metrics: Dict[str, _Registration] = {}
        self._lock = threading.RLock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE

    def initialize(self) -> None:
        with self._lock:
            if self._initialized:
                raise RegistryStateError("Metrics registry is already initialized")
            if self._collect_process_metrics:
                self._registry.register(ProcessMetricsCollector())
                self._registry.register(GuardedCollector(PlatformCollector(registry=None), "platform"))
                self._registry.register(GuardedCollector(GCCollector(registry=CollectorRegistry()), "gc"))
                self.gauge(EVENT_LOOP_LAG_METRIC, "Lag of the asyncio event loop in seconds.", namespaced=False)
            self._initialized = True
        log_event(logger, "metrics.registry.initialized", process_metrics=self._collect_process_metrics)

    def register(
        self,
        name: str,
        kind: Union[MetricKind, str],
        documentation: str,
        labelnames: Sequence[str] = (),
        namespaced: bool = True,
        **options: Any,
    ) -> MetricWrapperBase:
        kind = MetricKind(kind)
        labels = tuple(labelnames)
        with self._lock:
            existing = self._metrics.get(name)
            if existing is not None:
                if existing.kind is not kind:
                    raise MetricRegistrationError(
                        f"Metric {name!r} is already registered as a {existing.kind.value}, not a {kind.value}"
                    )
                if existing.labelnames != labels:
                    raise MetricRegistrationError(
                        f"Metric {name!r} is already registered with labels {list(existing.labelnames)}"
                    )
                return existing.metric
            try:
                metric = _METRIC_TYPES[kind](
                    name,
                    documentation,
                    labels,
                    namespace=self._namespace if namespaced else "",
                    registry=self._registry,
                    **options,
                )
            except ValueError as exc:
                raise MetricRegistrationError(f"Cannot register metric {name!r}: {exc}") from exc
            self._metrics[name] = _Registration(kind=kind, labelnames=labels, metric=metric)
            return metric

    def counter(self, name: str, documentation: str, labelnames: Sequence[str] = (), **options: Any) -> Counter:
        return self.register(name, MetricKind.COUNTER, documentation, labelnames, **options)

    def gauge(self, name: str, documentation: str, labelnames: Sequence[str] = (), **options: Any) -> Gauge:
        return self.register(name, MetricKind.GAUGE, documentation, labelnames, **options)

    def histogram(self, name: str, documentation: str, labelnames: Sequence[str] = (), **options: Any) -> Histogram:
        return self.register(name, MetricKind.HISTOGRAM, documentation, labelnames, **options)

    def names(self) -> Iterable[str]:
        with self._lock:
            return list(self._metrics)

    def serialize(self) -> bytes:
        if not self._initialized:
            raise RegistryStateError("Metrics registry is not initialized")
        return generate_latest(self._registry)
