# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: On-call phone resolution.

team key → rotation → on-call participant → profile email →
directory record → dialable number. Every step depends on the previous
one; the first failure ends the lookup with a typed error.
"""

from typing import Optional

import httpx

from oncall_phone.core.config import Settings
from oncall_phone.core.errors import NotFoundError, UpstreamError
from oncall_phone.core.logging import get_logger, mask_phone
from oncall_phone.metrics.prometheus import LOOKUPS_TOTAL
from oncall_phone.services.directory_service import DirectoryService
from oncall_phone.services.phone import normalize_phone
from oncall_phone.services.roster_client import RosterClient
from oncall_phone.services.schedule_service import ScheduleService

logger = get_logger(__name__)


class ResolutionService:
    """Single entry point for "who is on call for team X, and at what number"."""

    def __init__(
        self,
        config: Settings,
        schedule_service: ScheduleService,
        roster_client: RosterClient,
        directory_service: DirectoryService,
    ) -> None:
        self._config = config
        self._schedules = schedule_service
        self._roster = roster_client
        self._directory = directory_service

    def rotation_name_for(self, team_key: str) -> Optional[str]:
        return self._config.TEAM_MAPPING.get(team_key)

    async def resolve_phone_for_team(self, team_key: str, trace_id: Optional[str] = None) -> str:
        """
        Return the normalized phone number for the team's current on-call.
        Raises NotFoundError or UpstreamError; never retries.
        """
        try:
            phone = await self._resolve(team_key, trace_id)
        except NotFoundError as exc:
            LOOKUPS_TOTAL.labels(team=team_key, outcome="not_found").inc()
            logger.warning(
                "Lookup ended without a number: %s", exc,
                extra={"trace_id": trace_id, "team": team_key, "stage": exc.stage},
            )
            raise
        except UpstreamError as exc:
            LOOKUPS_TOTAL.labels(team=team_key, outcome="upstream_error").inc()
            logger.error(
                "Lookup failed upstream: %s", exc,
                extra={"trace_id": trace_id, "team": team_key, "stage": exc.stage},
            )
            raise

        LOOKUPS_TOTAL.labels(team=team_key, outcome="found").inc()
        logger.info(
            "Resolved on-call number %s", mask_phone(phone),
            extra={"trace_id": trace_id, "team": team_key},
        )
        return phone

    async def _resolve(self, team_key: str, trace_id: Optional[str]) -> str:
        rotation_name = self.rotation_name_for(team_key)
        if rotation_name is None:
            raise NotFoundError(f"Unknown team key: {team_key}", "mapping")

        rotation = await self._step(
            "list_rotations", self._schedules.find_rotation(rotation_name, trace_id)
        )
        if rotation is None:
            raise NotFoundError(f"No schedule found for team: {team_key}", "rotation")

        participant = await self._step(
            "current_on_call", self._roster.current_on_call(rotation.id, trace_id)
        )
        if participant is None:
            raise NotFoundError(f"No on-call participant for team: {team_key}", "participant")

        profile = await self._step("profile", self._roster.profile(participant.id, trace_id))
        if not profile.email:
            raise NotFoundError(
                f"No on-call user with email found for team: {team_key}", "profile"
            )

        record = await self._directory.find_by_email(profile.email, trace_id)
        if record is None:
            raise NotFoundError(f"No directory record for email: {profile.email}", "directory")

        phone = normalize_phone(record.cell_phone)
        if phone:
            return phone
        if record.has_extension:
            # Extension-only records get the shared default number, not the extension.
            logger.warning(
                "Only an extension is on record for %s; returning the default number",
                profile.email,
                extra={"trace_id": trace_id, "team": team_key, "stage": "phone"},
            )
            return self._config.DEFAULT_PHONE_NUMBER
        raise NotFoundError(f"No phone number on record for email: {profile.email}", "phone")

    @staticmethod
    async def _step(stage: str, call):
        """Await one roster step, tagging stray transport errors with the stage."""
        try:
            return await call
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Roster service request failed: {exc}", stage) from exc

    # ── Maintenance ──

    def clear_caches(self) -> None:
        """Empty both snapshot caches; the next lookup refetches everything."""
        self._schedules.invalidate()
        self._directory.invalidate()
        logger.info("Rotation and directory caches cleared")

    def test_number(self) -> str:
        return self._config.DEFAULT_PHONE_NUMBER
