from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: bool = Field(..., description="True when the dependency answered the probe")
    message: str


class ErrorResponse(BaseModel):
    detail: str
