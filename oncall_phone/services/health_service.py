# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Dependency health over roster and directory reachability.
Probes never mutate cache state beyond a normal cached read, never retry.
"""

from typing import Optional

from oncall_phone.core.logging import get_logger
from oncall_phone.services.directory_source import DirectorySource
from oncall_phone.services.schedule_service import ScheduleService

logger = get_logger(__name__)


class HealthService:
    """Boolean health per dependency plus an overall verdict."""

    def __init__(self, schedule_service: ScheduleService, directory_source: DirectorySource) -> None:
        self._schedules = schedule_service
        self._directory = directory_source

    async def roster_healthy(self, trace_id: Optional[str] = None) -> bool:
        """A warm rotation cache counts as healthy without a round-trip."""
        try:
            rotations = await self._schedules.list_rotations(trace_id)
        except Exception:
            logger.exception("Roster health check failed", extra={"trace_id": trace_id})
            return False
        return len(rotations) > 0

    async def directory_healthy(self, trace_id: Optional[str] = None) -> bool:
        return await self._directory.probe(trace_id)

    async def check(self, trace_id: Optional[str] = None) -> dict[str, bool]:
        return {
            "roster": await self.roster_healthy(trace_id),
            "directory": await self.directory_healthy(trace_id),
        }

    async def is_healthy(self, trace_id: Optional[str] = None) -> bool:
        return all((await self.check(trace_id)).values())
