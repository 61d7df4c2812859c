from __future__ import annotations

from fastapi import Request

from core.health import DependencyProber
from core.metrics import MetricsRegistry


def get_registry(request: Request) -> MetricsRegistry:
    return request.app.state.registry


def get_prober(request: Request) -> DependencyProber:
    return request.app.state.prober
