# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster client. HTTP calls to the on-call schedule service.

Three read-only endpoints: the full rotation list, the on-call participant
for a rotation on a given day, and the profile behind a participant id.
Failures are raised as ``UpstreamError`` tagged with the stage; nothing is
retried here.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from oncall_phone.core.config import Settings
from oncall_phone.core.errors import ConfigurationError, UpstreamError
from oncall_phone.core.logging import get_logger
from oncall_phone.metrics.prometheus import UPSTREAM_ERRORS
from oncall_phone.models.domain import OnCallParticipant, Rotation, UserProfile

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def start_of_day_iso(now: datetime) -> str:
    """UTC midnight of ``now`` in the roster API's millisecond ISO format."""
    midnight = now.astimezone(timezone.utc).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return midnight.strftime("%Y-%m-%dT%H:%M:%S.000Z")


class RosterClient:
    """Async client for the roster service; shares one ``httpx.AsyncClient``."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: Settings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = http_client
        self._config = config
        self._clock = clock

    # ── Endpoints ──

    async def list_rotations(self, trace_id: Optional[str] = None) -> list[Rotation]:
        """Fetch every rotation in one call (no pagination)."""
        stage = "list_rotations"
        data = await self._get_json(stage, self._schedules_url(stage), trace_id=trace_id)

        values = data.get("values") if isinstance(data, dict) else None
        if not isinstance(values, list):
            raise self._fail(stage, "Invalid response format from roster service", trace_id)
        try:
            rotations = [
                Rotation(
                    id=str(item["id"]),
                    name=item.get("name") or "",
                    description=item.get("description"),
                    timezone=item.get("timezone"),
                )
                for item in values
            ]
        except (KeyError, TypeError, AttributeError, ValidationError, ValueError) as exc:
            raise self._fail(stage, f"Malformed rotation entry: {exc}", trace_id) from exc

        logger.info(
            "Retrieved %d rotations from roster service", len(rotations),
            extra={"trace_id": trace_id, "stage": stage},
        )
        return rotations

    async def current_on_call(
        self, rotation_id: str, trace_id: Optional[str] = None
    ) -> Optional[OnCallParticipant]:
        """Who is on call at the start of today (UTC) for ``rotation_id``."""
        stage = "current_on_call"
        url = f"{self._schedules_url(stage)}/{rotation_id}/on-calls"
        params = {"date": start_of_day_iso(self._clock())}
        data = await self._get_json(stage, url, params=params, trace_id=trace_id)

        if not isinstance(data, dict):
            raise self._fail(stage, "Invalid on-call response from roster service", trace_id)
        participants = data.get("onCallParticipants") or []
        if not isinstance(participants, list):
            raise self._fail(stage, "Invalid on-call participant list", trace_id)
        if not participants:
            logger.warning(
                "No on-call participants found for rotation %s", rotation_id,
                extra={"trace_id": trace_id, "stage": stage},
            )
            return None

        first = participants[0]
        participant_id = first.get("id") if isinstance(first, dict) else None
        if not participant_id:
            raise self._fail(stage, "On-call participant has no id", trace_id)
        logger.info(
            "Found on-call participant %s", participant_id,
            extra={"trace_id": trace_id, "stage": stage},
        )
        return OnCallParticipant(id=str(participant_id))

    async def profile(self, participant_id: str, trace_id: Optional[str] = None) -> UserProfile:
        """Resolve display name and email for an identity reference."""
        stage = "profile"
        if not self._config.ROSTER_PROFILE_URL:
            raise ConfigurationError("Roster profile URL is not configured", stage)
        data = await self._get_json(
            stage,
            self._config.ROSTER_PROFILE_URL,
            params={"accountId": participant_id},
            trace_id=trace_id,
        )
        if not isinstance(data, dict):
            raise self._fail(stage, "Invalid profile response from roster service", trace_id)

        try:
            profile = UserProfile(
                account_id=participant_id,
                display_name=data.get("displayName"),
                email=data.get("emailAddress") or None,
            )
        except (ValidationError, TypeError, ValueError) as exc:
            raise self._fail(stage, f"Malformed profile payload: {exc}", trace_id) from exc
        logger.info(
            "Profile received for %s (has_email=%s)",
            profile.display_name or participant_id, bool(profile.email),
            extra={"trace_id": trace_id, "stage": stage},
        )
        return profile

    # ── Internal ──

    def _schedules_url(self, stage: str) -> str:
        cfg = self._config
        if not cfg.roster_configured:
            raise ConfigurationError("Incomplete roster service configuration", stage)
        return f"{cfg.ROSTER_HOST_URL}/{cfg.ROSTER_BASE_PATH}/{cfg.ROSTER_TENANT_ID}/v1/schedules"

    def _auth(self) -> Optional[httpx.Auth]:
        if self._config.ROSTER_USERNAME:
            return httpx.BasicAuth(self._config.ROSTER_USERNAME, self._config.ROSTER_API_TOKEN)
        return None

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if not self._config.ROSTER_USERNAME:
            headers["Authorization"] = f"Bearer {self._config.ROSTER_API_TOKEN}"
        return headers

    async def _get_json(
        self,
        stage: str,
        url: str,
        params: Optional[dict[str, str]] = None,
        trace_id: Optional[str] = None,
    ) -> Any:
        if not self._config.ROSTER_API_TOKEN:
            raise ConfigurationError("Roster API token is not configured", stage)
        try:
            resp = await self._client.get(
                url, params=params, headers=self._headers(), auth=self._auth() or httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as exc:
            raise self._fail(stage, f"Roster service unreachable: {exc}", trace_id) from exc

        if resp.status_code < 200 or resp.status_code >= 300:
            raise self._fail(
                stage,
                f"HTTP error {resp.status_code}: {resp.reason_phrase}",
                trace_id,
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise self._fail(stage, "Roster service returned invalid JSON", trace_id) from exc

    def _fail(
        self,
        stage: str,
        message: str,
        trace_id: Optional[str],
        status_code: Optional[int] = None,
    ) -> UpstreamError:
        UPSTREAM_ERRORS.labels(stage=stage).inc()
        logger.error(
            message,
            extra={"trace_id": trace_id, "stage": stage, "status_code": status_code},
        )
        return UpstreamError(message, stage, status_code=status_code)
