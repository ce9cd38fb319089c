# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
System endpoints: health, readiness, stats reset, metrics.
Pure HTTP layer: no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from oncall_phone.core.config import settings
from oncall_phone.core.dependencies import (
    get_health_service,
    get_resolution_service,
    get_stats_repo,
)
from oncall_phone.core.logging import get_logger
from oncall_phone.repositories.stats_repository import StatsRepository
from oncall_phone.schemas.lookup import HealthResponse, ReadinessResponse, StatsResetResponse
from oncall_phone.services.health_service import HealthService
from oncall_phone.services.resolution_service import ResolutionService

logger = get_logger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    health: HealthService = Depends(get_health_service),
    stats: StatsRepository = Depends(get_stats_repo),
):
    """Dependency status plus request counters. Always 200; see /health/ready."""
    checks = await health.check(getattr(request.state, "request_id", None))
    return {
        "status": "ok" if all(checks.values()) else "degraded",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(stats.uptime_seconds(), 3),
        "dependencies": {
            name: "healthy" if ok else "unhealthy" for name, ok in checks.items()
        },
        "requests": stats.snapshot(),
    }


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(
    request: Request,
    health: HealthService = Depends(get_health_service),
):
    """Readiness probe: 503 until both dependencies answer."""
    checks = await health.check(getattr(request.state, "request_id", None))
    ready = all(checks.values())
    body = {"status": "ready" if ready else "unavailable", "dependencies": checks}
    return JSONResponse(status_code=200 if ready else 503, content=body)


@router.get("/stats/reset", response_model=StatsResetResponse)
def reset_stats(
    service: ResolutionService = Depends(get_resolution_service),
    stats: StatsRepository = Depends(get_stats_repo),
):
    """Zero the request counters and drop both caches."""
    stats.reset()
    service.clear_caches()
    logger.info("Request statistics reset")
    return {"status": "ok", "message": "Statistics reset and caches cleared"}


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
