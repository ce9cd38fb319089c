# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: plain-text phone lookups for the telephony system.
One route per configured team key, plus ``/test``.
Thin HTTP layer: delegates ALL logic to ResolutionService.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from oncall_phone.core.config import settings
from oncall_phone.core.dependencies import get_resolution_service, get_stats_repo
from oncall_phone.core.errors import ConfigurationError, LookupFailure, NotFoundError
from oncall_phone.repositories.stats_repository import StatsRepository
from oncall_phone.schemas.lookup import ErrorResponse
from oncall_phone.services.resolution_service import ResolutionService

router = APIRouter(tags=["Lookup"])


def _error(status_code: int, exc: Exception, request: Request, stage=None) -> JSONResponse:
    body = ErrorResponse(
        message=str(exc),
        error_id=getattr(request.state, "request_id", ""),
        stage=stage,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _status_for(exc: LookupFailure) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConfigurationError):
        return 500
    return 502


def _lookup_endpoint(team_key: str):
    async def lookup(
        request: Request,
        service: ResolutionService = Depends(get_resolution_service),
        stats: StatsRepository = Depends(get_stats_repo),
    ):
        trace_id = getattr(request.state, "request_id", None)
        try:
            phone = await service.resolve_phone_for_team(team_key, trace_id)
        except LookupFailure as e:
            stats.record_request(team_key, success=False)
            stats.record_error(str(e), team=team_key, stage=e.stage)
            return _error(_status_for(e), e, request, e.stage)

        stats.record_request(team_key, success=True)
        return PlainTextResponse(phone)

    lookup.__name__ = f"lookup_{team_key}"
    return lookup


for _team_key, _rotation_name in settings.TEAM_MAPPING.items():
    router.add_api_route(
        f"/{_team_key}",
        _lookup_endpoint(_team_key),
        methods=["GET"],
        response_class=PlainTextResponse,
        summary=f"On-call phone for {_rotation_name}",
        responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    )


@router.get("/test", response_class=PlainTextResponse)
def test_number(service: ResolutionService = Depends(get_resolution_service)):
    """Fixed default number for telephony smoke tests."""
    return PlainTextResponse(service.test_number())
