from __future__ import annotations

from fastapi import APIRouter, Depends
from starlette.responses import Response

from apps.api.dependencies import get_registry
from apps.api.models import ErrorResponse
from core.metrics import MetricsRegistry

router = APIRouter(tags=["metrics"])


@router.get(
    "/metrics",
    response_class=Response,
    responses={
        200: {"content": {"text/plain": {}}, "description": "Prometheus text exposition"},
        500: {"model": ErrorResponse, "description": "Metrics registry is not initialized"},
    },
)
async def metrics(registry: MetricsRegistry = Depends(get_registry)) -> Response:
    data = registry.serialize()
    return Response(content=data, media_type=registry.content_type)
