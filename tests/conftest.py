"""Pytest configuration and shared fixtures."""

import json

import httpx
import pytest

from job_tracker.config.settings import reset_settings
from job_tracker.tracker.cache import LocalCacheStore
from job_tracker.tracker.remote import RemoteClient
from job_tracker.utils.logging import reset_logging

BASE_URL = "http://api.test/api"

SETTINGS_ENV_VARS = [
    "REMOTE_ENABLED",
    "API_URL",
    "REMOTE_TIMEOUT_MS",
    "CACHE_DB_PATH",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from the caller's settings and logging setup."""
    for var in SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    reset_logging()
    yield
    reset_settings()
    reset_logging()


class FakeApi:
    """In-memory stand-in for the applications API.

    Attributes:
        records: Stored records keyed by id (wire form).
        database: Value reported in the ``mongodb`` health field.
        offline: If True, every request fails with a connection error.
        fail_with: If set, application routes answer with this status code.
        requests: (method, path) of every request received.
    """

    def __init__(self):
        self.records: dict[str, dict] = {}
        self.database = "Connected"
        self.offline = False
        self.fail_with: int | None = None
        self.requests: list[tuple[str, str]] = []

    def count(self, method: str, suffix: str = "") -> int:
        return sum(
            1 for m, path in self.requests if m == method and path.endswith(suffix)
        )

    @property
    def health_checks(self) -> int:
        return self.count("GET", "/health")

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))

        if self.offline:
            raise httpx.ConnectError("connection refused", request=request)

        if path.endswith("/health"):
            ok = self.database == "Connected"
            return httpx.Response(
                200, json={"status": "ok" if ok else "limited", "mongodb": self.database}
            )

        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": "server failure"})

        rest = path.split("/applications", 1)[1].strip("/")
        if not rest:
            if request.method == "GET":
                return httpx.Response(200, json=list(self.records.values()))
            body = json.loads(request.content)
            stored = {**body, "_id": f"oid-{body['id']}", "__v": 0}
            self.records[body["id"]] = stored
            return httpx.Response(201, json=stored)

        if rest not in self.records:
            return httpx.Response(404, json={"error": "Application not found"})
        if request.method == "GET":
            return httpx.Response(200, json=self.records[rest])
        if request.method == "PUT":
            self.records[rest] = {**self.records[rest], **json.loads(request.content)}
            return httpx.Response(200, json=self.records[rest])
        del self.records[rest]
        return httpx.Response(200, json={"message": "Application deleted successfully"})


@pytest.fixture
def fake_api() -> FakeApi:
    """An in-memory applications API."""
    return FakeApi()


@pytest.fixture
async def remote(fake_api):
    """A RemoteClient wired to the fake API."""
    client = RemoteClient(
        BASE_URL, timeout=0.5, transport=httpx.MockTransport(fake_api.handler)
    )
    yield client
    await client.close()


@pytest.fixture
async def cache(tmp_path):
    """An initialized local cache store."""
    store = LocalCacheStore(tmp_path / "cache.db")
    await store.initialize()
    yield store
    await store.close()
