# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Response schemas: API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from typing import Optional

from pydantic import BaseModel, Field

from oncall_phone.models.domain import Rotation


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str
    error_id: str = Field(..., description="Request id to correlate with logs")
    stage: Optional[str] = None


class RequestStats(BaseModel):
    total: int
    success: int
    error: int
    error_rate: str
    teams: dict[str, int]
    last_error: Optional[dict] = None


class HealthResponse(BaseModel):
    status: str = Field(..., pattern="^(ok|degraded)$")
    service: str
    version: str
    timestamp: str
    uptime: float = Field(..., description="Seconds since process start")
    dependencies: dict[str, str]
    requests: RequestStats


class ReadinessResponse(BaseModel):
    status: str
    dependencies: dict[str, bool]


class StatsResetResponse(BaseModel):
    status: str = "ok"
    message: str


class RotationListResponse(BaseModel):
    count: int
    rotations: list[Rotation]
    mapping: dict[str, str]
    unmatched: list[str] = Field(
        default_factory=list, description="Team keys whose rotation name is not listed"
    )
    suggestions: dict[str, list[str]] = Field(default_factory=dict)
