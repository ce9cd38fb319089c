# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: rotation diagnostics. Lists what the roster service holds and how
the configured team keys line up with it.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from oncall_phone.core.config import settings
from oncall_phone.core.dependencies import get_schedule_service
from oncall_phone.core.errors import ConfigurationError, UpstreamError
from oncall_phone.schemas.lookup import RotationListResponse
from oncall_phone.services.schedule_service import ScheduleService

router = APIRouter(prefix="/api/v1", tags=["Rotations"])


@router.get("/rotations", response_model=RotationListResponse)
async def list_rotations(
    request: Request,
    service: ScheduleService = Depends(get_schedule_service),
):
    """List rotations and suggest matches for team keys with no exact name."""
    trace_id = getattr(request.state, "request_id", None)
    try:
        rotations = await service.list_rotations(trace_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))

    names = {r.name for r in rotations}
    unmatched = [key for key, name in settings.TEAM_MAPPING.items() if name not in names]
    suggestions = await service.suggest_mappings(unmatched, trace_id) if unmatched else {}
    return {
        "count": len(rotations),
        "rotations": list(rotations),
        "mapping": dict(settings.TEAM_MAPPING),
        "unmatched": unmatched,
        "suggestions": suggestions,
    }
