# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Dependency injection: shared HTTP client, caches, and service singletons.
Built in the lifespan by ``init_services`` and torn down by ``close_services``.
"""

from typing import Callable, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from oncall_phone.core.config import (
    DIRECTORY_CACHE_SECONDS,
    SCHEDULE_CACHE_SECONDS,
    Settings,
    settings,
)
from oncall_phone.core.database import create_directory_engine
from oncall_phone.core.logging import get_logger
from oncall_phone.repositories.cache_slot import CacheSlot
from oncall_phone.repositories.stats_repository import StatsRepository
from oncall_phone.services.directory_service import DirectoryService
from oncall_phone.services.directory_source import DirectorySource, build_directory_source
from oncall_phone.services.health_service import HealthService
from oncall_phone.services.resolution_service import ResolutionService
from oncall_phone.services.roster_client import RosterClient
from oncall_phone.services.schedule_service import ScheduleService

logger = get_logger(__name__)

_http_client: httpx.AsyncClient | None = None
_directory_source: DirectorySource | None = None
_schedule_service: ScheduleService | None = None
_resolution_service: ResolutionService | None = None
_health_service: HealthService | None = None
_stats_repo = StatsRepository()


def build_http_client(config: Settings) -> httpx.AsyncClient:
    timeout = httpx.Timeout(config.ROSTER_READ_TIMEOUT, connect=config.ROSTER_CONNECT_TIMEOUT)
    return httpx.AsyncClient(timeout=timeout)


def init_services(
    config: Settings = settings,
    http_client: Optional[httpx.AsyncClient] = None,
    engine_factory: Callable[[Settings], AsyncEngine] = create_directory_engine,
) -> None:
    global _http_client, _directory_source, _schedule_service
    global _resolution_service, _health_service

    _http_client = http_client or build_http_client(config)
    roster_client = RosterClient(_http_client, config)

    _directory_source = build_directory_source(config, engine_factory)
    _schedule_service = ScheduleService(
        roster_client, CacheSlot("schedules", SCHEDULE_CACHE_SECONDS)
    )
    directory_service = DirectoryService(
        _directory_source, CacheSlot("directory", DIRECTORY_CACHE_SECONDS)
    )
    _resolution_service = ResolutionService(
        config=config,
        schedule_service=_schedule_service,
        roster_client=roster_client,
        directory_service=directory_service,
    )
    _health_service = HealthService(_schedule_service, _directory_source)
    logger.info("Services initialised", extra={"backend": _directory_source.backend})


async def close_services() -> None:
    global _http_client, _directory_source
    if _http_client:
        await _http_client.aclose()
        _http_client = None
    if _directory_source:
        await _directory_source.close()
        _directory_source = None


# ── FastAPI dependency functions ──
def get_resolution_service() -> ResolutionService:
    assert _resolution_service is not None
    return _resolution_service


def get_schedule_service() -> ScheduleService:
    assert _schedule_service is not None
    return _schedule_service


def get_health_service() -> HealthService:
    assert _health_service is not None
    return _health_service


def get_directory_source() -> DirectorySource:
    assert _directory_source is not None
    return _directory_source


def get_stats_repo() -> StatsRepository:
    return _stats_repo
