# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Shared fixtures: configured settings, a controllable clock, a mock roster."""

import pytest
import httpx

from oncall_phone.core.config import DEFAULT_TEAM_MAPPING, Settings
from oncall_phone.services.directory_source import DirectorySource

HOST_URL = "https://api.example.com"
BASE_PATH = "jsm/ops/api"
TENANT_ID = "tenant-1"
PROFILE_URL = "https://roster.example.com/rest/api/3/user"
SCHEDULES_URL = f"{HOST_URL}/{BASE_PATH}/{TENANT_ID}/v1/schedules"


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeClock:
    """Monotonic stand-in that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDirectorySource(DirectorySource):
    """In-memory directory backend that counts fetches."""

    backend = "fake"

    def __init__(self, records=None, healthy=True):
        self.records = list(records or [])
        self.healthy = healthy
        self.fetch_count = 0
        self.closed = False

    async def fetch_records(self, trace_id=None):
        self.fetch_count += 1
        return list(self.records)

    async def probe(self, trace_id=None):
        return self.healthy

    async def close(self):
        self.closed = True


class RosterStub:
    """Route table for ``httpx.MockTransport`` with per-path call counts."""

    def __init__(self):
        self.rotations = [
            {"id": "r-help", "name": "Help-Desk-schedule", "timezone": "America/Chicago"},
            {"id": "r-net", "name": "Network-schedule"},
        ]
        self.on_call = {"r-help": [{"id": "acct-1"}], "r-net": []}
        self.profiles = {"acct-1": {"displayName": "Alice Doe", "emailAddress": "A@X.com"}}
        self.calls: list[httpx.Request] = []

    def count(self, suffix: str) -> int:
        return sum(1 for r in self.calls if r.url.path.endswith(suffix))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        url = str(request.url).split("?")[0]
        if url == SCHEDULES_URL:
            return httpx.Response(200, json={"values": self.rotations})
        if url.startswith(SCHEDULES_URL + "/") and url.endswith("/on-calls"):
            rotation_id = url[len(SCHEDULES_URL) + 1:-len("/on-calls")]
            return httpx.Response(
                200, json={"onCallParticipants": self.on_call.get(rotation_id, [])}
            )
        if url == PROFILE_URL:
            profile = self.profiles.get(request.url.params.get("accountId"))
            if profile is None:
                return httpx.Response(404, json={"errorMessages": ["not found"]})
            return httpx.Response(200, json=profile)
        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def config():
    """Settings with a complete roster configuration and Basic auth."""
    cfg = Settings()
    cfg.ROSTER_HOST_URL = HOST_URL
    cfg.ROSTER_BASE_PATH = BASE_PATH
    cfg.ROSTER_TENANT_ID = TENANT_ID
    cfg.ROSTER_USERNAME = "svc@example.com"
    cfg.ROSTER_API_TOKEN = "secret-token"
    cfg.ROSTER_PROFILE_URL = PROFILE_URL
    cfg.DIRECTORY_BACKEND = "database"
    cfg.SQL_SERVER = "sql.example.com"
    cfg.SQL_PORT = 1433
    cfg.SQL_DATABASE = "Directory"
    cfg.SQL_TABLE = "dbo.PhoneDirectory"
    cfg.SQL_AUTH_MODE = "sql"
    cfg.SQL_USERNAME = "phone_reader"
    cfg.SQL_PASSWORD = "hunter2"
    cfg.SQL_DOMAIN = ""
    cfg.DEFAULT_PHONE_NUMBER = "15555555555"
    cfg.TEAM_MAPPING = dict(DEFAULT_TEAM_MAPPING)
    return cfg


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def roster():
    return RosterStub()
