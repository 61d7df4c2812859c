from .loop_lag import EventLoopLagMonitor
from .process import ProcessMetricsCollector
from .registry import CONTENT_TYPE, EVENT_LOOP_LAG_METRIC, MetricKind, MetricsRegistry

__all__ = [
    "CONTENT_TYPE",
    "EVENT_LOOP_LAG_METRIC",
    "EventLoopLagMonitor",
    "MetricKind",
    "MetricsRegistry",
    "ProcessMetricsCollector",
]
