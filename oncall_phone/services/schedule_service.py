# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation lookups over the cached rotation list.
The runtime path matches names exactly; fuzzy suggestions are diagnostic only.
"""

from typing import Optional

from oncall_phone.core.logging import get_logger
from oncall_phone.models.domain import Rotation
from oncall_phone.repositories.cache_slot import CacheSlot
from oncall_phone.services.roster_client import RosterClient

logger = get_logger(__name__)


class ScheduleService:
    """Business logic for finding the rotation behind a team key."""

    def __init__(self, roster_client: RosterClient, cache: CacheSlot[Rotation]) -> None:
        self._roster = roster_client
        self._cache = cache

    # ── Queries ──

    async def list_rotations(self, trace_id: Optional[str] = None) -> tuple[Rotation, ...]:
        """All rotations, served from cache while fresh."""
        cached = self._cache.peek()
        if cached is not None:
            logger.info(
                "Using cached rotation data (expires in %d seconds)",
                round(self._cache.seconds_remaining()),
                extra={"trace_id": trace_id},
            )

        async def load() -> list[Rotation]:
            logger.info("Fetching rotations from roster service", extra={"trace_id": trace_id})
            return await self._roster.list_rotations(trace_id=trace_id)

        return await self._cache.get_or_refresh(load)

    async def find_rotation(self, name: str, trace_id: Optional[str] = None) -> Optional[Rotation]:
        """Exact-name match against the rotation list; None when absent."""
        rotations = await self.list_rotations(trace_id)
        for rotation in rotations:
            if rotation.name == name:
                logger.info(
                    "Found rotation %s", rotation.name,
                    extra={"trace_id": trace_id, "rotation": rotation.id},
                )
                return rotation

        logger.warning(
            "No rotation named %s; available: %s",
            name, ", ".join(r.name for r in rotations) or "(none)",
            extra={"trace_id": trace_id},
        )
        return None

    async def suggest_mappings(
        self, team_keys: list[str], trace_id: Optional[str] = None
    ) -> dict[str, list[str]]:
        """
        Candidate rotation names per team key, by case-insensitive containment
        in either direction. Used to help fix the team mapping; never consulted
        when resolving a lookup.
        """
        rotations = await self.list_rotations(trace_id)
        suggestions: dict[str, list[str]] = {}
        for key in team_keys:
            needle = key.lower()
            suggestions[key] = [
                r.name for r in rotations
                if r.name and (needle in r.name.lower() or r.name.lower() in needle)
            ]
        return suggestions

    # ── Commands ──

    def invalidate(self) -> None:
        self._cache.invalidate()
