from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import FastAPI, Request

from apps.api.metrics import ApiMetrics, register_api_metrics
from apps.api.middleware import LoggingMiddleware, register_exception_handlers
from apps.api.routers import health_router, metrics_router
from core.cache import RedisClient
from core.config import Settings, get_settings
from core.health import DependencyProber, PingClient
from core.logging import configure_logging, log_event
from core.metrics import EVENT_LOOP_LAG_METRIC, EventLoopLagMonitor, MetricsRegistry

logger = logging.getLogger(__name__)


def metrics_middleware(app: FastAPI, api_metrics: ApiMetrics) -> Callable:
    @app.middleware("http")
    async def _metrics(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        # Label by the matched route template; unrouted paths share one value.
        route = request.scope.get("route")
        endpoint = getattr(route, "path", None) or "other"
        api_metrics.request_latency.labels(endpoint).observe(time.perf_counter() - start)
        api_metrics.request_count.labels(request.method, endpoint, str(response.status_code)).inc()
        return response

    return _metrics


def create_app(
    settings: Optional[Settings] = None,
    *,
    registry: Optional[MetricsRegistry] = None,
    client: Optional[PingClient] = None,
) -> FastAPI:
    """Build the service.

    The metrics registry is initialized here, before any server can accept
    connections, so configuration errors abort startup instead of surfacing
    at request time.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name)

    if registry is None:
        registry = MetricsRegistry(
            namespace=settings.metrics_namespace,
            collect_process_metrics=settings.collect_process_metrics,
        )
    if not registry.initialized:
        registry.initialize()
    api_metrics = register_api_metrics(registry)

    owns_client = client is None
    if client is None:
        client = RedisClient.from_settings(settings)
    prober = DependencyProber(
        client,
        dependency="Redis",
        timeout_seconds=settings.redis_timeout_seconds,
        observer=api_metrics.observe_probe,
    )

    loop_lag_monitor: Optional[EventLoopLagMonitor] = None
    if settings.collect_process_metrics:
        loop_lag_monitor = EventLoopLagMonitor(
            registry.gauge(EVENT_LOOP_LAG_METRIC, "Lag of the asyncio event loop in seconds.", namespaced=False),
            interval_seconds=settings.event_loop_lag_interval_seconds,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if loop_lag_monitor is not None:
            loop_lag_monitor.start()
        log_event(logger, "service.started", env=settings.app_env, redis_timeout_seconds=settings.redis_timeout_seconds)
        try:
            yield
        finally:
            if loop_lag_monitor is not None:
                await loop_lag_monitor.stop()
            if owns_client and isinstance(client, RedisClient):
                await client.close()
            log_event(logger, "service.stopped")

    app = FastAPI(title="Redis health & metrics API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.prober = prober
    app.state.api_metrics = api_metrics

    app.include_router(health_router)
    app.include_router(metrics_router)

    app.add_middleware(LoggingMiddleware)
    metrics_middleware(app, api_metrics)
    register_exception_handlers(app)
    return app
