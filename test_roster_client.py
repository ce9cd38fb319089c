# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for the roster client and the rotation service over a mock transport."""

import base64
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from conftest import PROFILE_URL, SCHEDULES_URL, FakeClock
from oncall_phone.core.errors import ConfigurationError, UpstreamError
from oncall_phone.repositories.cache_slot import CacheSlot
from oncall_phone.services.roster_client import RosterClient, start_of_day_iso
from oncall_phone.services.schedule_service import ScheduleService

FIXED_NOW = datetime(2024, 3, 5, 17, 45, 12, tzinfo=timezone.utc)


def make_client(config, handler) -> RosterClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RosterClient(http, config, clock=lambda: FIXED_NOW)


class TestStartOfDay:
    def test_midnight_utc_with_millis(self):
        assert start_of_day_iso(FIXED_NOW) == "2024-03-05T00:00:00.000Z"

    def test_converts_offset_to_utc_first(self):
        local = datetime(2024, 3, 5, 20, 0, tzinfo=timezone(timedelta(hours=-6)))
        assert start_of_day_iso(local) == "2024-03-06T00:00:00.000Z"


class TestListRotations:
    @pytest.mark.anyio
    async def test_requests_schedule_list(self, config, roster):
        client = make_client(config, roster.handler)
        rotations = await client.list_rotations()
        assert [r.name for r in rotations] == ["Help-Desk-schedule", "Network-schedule"]
        assert rotations[0].timezone == "America/Chicago"
        assert str(roster.calls[0].url) == SCHEDULES_URL

    @pytest.mark.anyio
    async def test_basic_auth_when_username_set(self, config, roster):
        client = make_client(config, roster.handler)
        await client.list_rotations()
        expected = base64.b64encode(b"svc@example.com:secret-token").decode()
        headers = roster.calls[0].headers
        assert headers["Authorization"] == f"Basic {expected}"
        assert headers["Accept"] == "application/json"

    @pytest.mark.anyio
    async def test_bearer_auth_without_username(self, config, roster):
        config.ROSTER_USERNAME = ""
        client = make_client(config, roster.handler)
        await client.list_rotations()
        assert roster.calls[0].headers["Authorization"] == "Bearer secret-token"

    @pytest.mark.anyio
    async def test_non_2xx_raises_upstream_with_status(self, config):
        client = make_client(config, lambda req: httpx.Response(401, json={"message": "nope"}))
        with pytest.raises(UpstreamError) as exc:
            await client.list_rotations()
        assert exc.value.status_code == 401
        assert exc.value.stage == "list_rotations"

    @pytest.mark.anyio
    async def test_transport_error_raises_upstream(self, config):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = make_client(config, handler)
        with pytest.raises(UpstreamError) as exc:
            await client.list_rotations()
        assert exc.value.status_code is None

    @pytest.mark.anyio
    async def test_invalid_json_raises_upstream(self, config):
        client = make_client(config, lambda req: httpx.Response(200, text="<html>login</html>"))
        with pytest.raises(UpstreamError):
            await client.list_rotations()

    @pytest.mark.anyio
    async def test_wrong_shape_raises_upstream(self, config):
        client = make_client(config, lambda req: httpx.Response(200, json={"data": []}))
        with pytest.raises(UpstreamError, match="Invalid response format"):
            await client.list_rotations()

    @pytest.mark.anyio
    async def test_null_or_missing_name_becomes_empty(self, config):
        payload = {"values": [{"id": "r-1", "name": None}, {"id": "r-2"}]}
        client = make_client(config, lambda req: httpx.Response(200, json=payload))
        rotations = await client.list_rotations()
        assert [r.name for r in rotations] == ["", ""]

    @pytest.mark.anyio
    async def test_non_string_name_raises_upstream(self, config):
        payload = {"values": [{"id": "r-1", "name": {"en": "Help"}}]}
        client = make_client(config, lambda req: httpx.Response(200, json=payload))
        with pytest.raises(UpstreamError) as exc:
            await client.list_rotations()
        assert exc.value.stage == "list_rotations"

    @pytest.mark.anyio
    async def test_missing_config_fails_before_network(self, config, roster):
        config.ROSTER_TENANT_ID = ""
        client = make_client(config, roster.handler)
        with pytest.raises(ConfigurationError):
            await client.list_rotations()
        assert roster.calls == []

    @pytest.mark.anyio
    async def test_configuration_error_is_upstream_error(self, config, roster):
        config.ROSTER_API_TOKEN = ""
        client = make_client(config, roster.handler)
        with pytest.raises(UpstreamError):
            await client.list_rotations()


class TestCurrentOnCall:
    @pytest.mark.anyio
    async def test_sends_start_of_day_date(self, config, roster):
        client = make_client(config, roster.handler)
        participant = await client.current_on_call("r-help")
        assert participant.id == "acct-1"
        request = roster.calls[0]
        assert request.url.path.endswith("/v1/schedules/r-help/on-calls")
        assert request.url.params["date"] == "2024-03-05T00:00:00.000Z"

    @pytest.mark.anyio
    async def test_empty_participants_returns_none(self, config, roster):
        client = make_client(config, roster.handler)
        assert await client.current_on_call("r-net") is None

    @pytest.mark.anyio
    async def test_missing_participant_list_returns_none(self, config):
        client = make_client(config, lambda req: httpx.Response(200, json={}))
        assert await client.current_on_call("r-help") is None

    @pytest.mark.anyio
    async def test_server_error_tagged_with_stage(self, config):
        client = make_client(config, lambda req: httpx.Response(503))
        with pytest.raises(UpstreamError) as exc:
            await client.current_on_call("r-help")
        assert exc.value.stage == "current_on_call"
        assert exc.value.status_code == 503


class TestProfile:
    @pytest.mark.anyio
    async def test_profile_by_account_id(self, config, roster):
        client = make_client(config, roster.handler)
        profile = await client.profile("acct-1")
        assert profile.email == "A@X.com"
        assert profile.display_name == "Alice Doe"
        request = roster.calls[0]
        assert str(request.url).split("?")[0] == PROFILE_URL
        assert request.url.params["accountId"] == "acct-1"

    @pytest.mark.anyio
    async def test_profile_without_email(self, config):
        client = make_client(
            config, lambda req: httpx.Response(200, json={"displayName": "Bot", "emailAddress": ""})
        )
        profile = await client.profile("acct-2")
        assert profile.email is None

    @pytest.mark.anyio
    async def test_missing_profile_url_is_configuration_error(self, config, roster):
        config.ROSTER_PROFILE_URL = ""
        client = make_client(config, roster.handler)
        with pytest.raises(ConfigurationError) as exc:
            await client.profile("acct-1")
        assert exc.value.stage == "profile"
        assert roster.calls == []

    @pytest.mark.anyio
    @pytest.mark.parametrize("payload", [
        {"displayName": "Alice", "emailAddress": 12345},
        {"displayName": {"first": "Alice"}, "emailAddress": "a@x.com"},
    ])
    async def test_malformed_profile_raises_upstream(self, config, payload):
        client = make_client(config, lambda req: httpx.Response(200, json=payload))
        with pytest.raises(UpstreamError, match="Malformed profile payload") as exc:
            await client.profile("acct-1")
        assert exc.value.stage == "profile"


class TestScheduleService:
    def make_service(self, config, roster, clock=None):
        cache = CacheSlot("schedules", 15 * 60, clock=clock or FakeClock())
        return ScheduleService(make_client(config, roster.handler), cache)

    @pytest.mark.anyio
    async def test_find_rotation_exact_name(self, config, roster):
        service = self.make_service(config, roster)
        rotation = await service.find_rotation("Help-Desk-schedule")
        assert rotation.id == "r-help"

    @pytest.mark.anyio
    async def test_find_rotation_is_case_sensitive(self, config, roster):
        service = self.make_service(config, roster)
        assert await service.find_rotation("help-desk-schedule") is None

    @pytest.mark.anyio
    async def test_list_is_cached_for_fifteen_minutes(self, config, roster):
        clock = FakeClock()
        service = self.make_service(config, roster, clock)
        await service.find_rotation("Help-Desk-schedule")
        clock.advance(14 * 60)
        await service.find_rotation("Network-schedule")
        assert roster.count("/v1/schedules") == 1
        clock.advance(60)
        await service.list_rotations()
        assert roster.count("/v1/schedules") == 2

    @pytest.mark.anyio
    async def test_invalidate_refetches(self, config, roster):
        service = self.make_service(config, roster)
        await service.list_rotations()
        service.invalidate()
        await service.list_rotations()
        assert roster.count("/v1/schedules") == 2

    @pytest.mark.anyio
    async def test_suggest_mappings_by_containment(self, config, roster):
        roster.rotations.append({"id": "r-empty", "name": ""})
        service = self.make_service(config, roster)
        suggestions = await service.suggest_mappings(["network", "help", "sql"])
        assert suggestions == {
            "network": ["Network-schedule"],
            "help": ["Help-Desk-schedule"],
            "sql": [],
        }

    @pytest.mark.anyio
    async def test_null_name_never_suggested(self, config, roster):
        roster.rotations.append({"id": "r-null", "name": None})
        service = self.make_service(config, roster)
        assert await service.suggest_mappings(["none"]) == {"none": []}
        assert await service.find_rotation("None") is None
