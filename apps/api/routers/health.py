from __future__ import annotations

from fastapi import APIRouter, Depends

from apps.api.dependencies import get_prober
from apps.api.models import HealthResponse
from core.health import DependencyProber

router = APIRouter(tags=["health"])


@router.get("/redis", response_model=HealthResponse)
async def redis_health(prober: DependencyProber = Depends(get_prober)) -> HealthResponse:
    # Failures are reported in the body; this endpoint always answers 200.
    result = await prober.check_health()
    return HealthResponse(status=result.status, message=result.message)
