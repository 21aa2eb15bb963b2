"""HTTP client for the applications API.

Each call is bounded by a timeout (enforced by cancelling the request) and
its outcome is classified into a RemoteOutcome. The client never retries
and never raises for transport or server faults; retry and fallback policy
belongs to the storage coordinator.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0

# Database indicator reported by a healthy API
DB_CONNECTED = "connected"


class RemoteOutcome(str, Enum):
    """Classification of a remote call."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"


@dataclass
class RemoteResponse:
    """Result of a single remote call."""

    outcome: RemoteOutcome
    status_code: int | None = None
    data: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == RemoteOutcome.SUCCESS


@dataclass
class HealthStatus:
    """Result of a connectivity probe.

    Attributes:
        connected: True only if the API answered and reports its database
            as connected.
        status: The ``status`` field of the health response, if any.
        database: The database indicator of the health response, if any.
        error: Why the probe failed, if it did.
    """

    connected: bool
    status: str | None = None
    database: str | None = None
    error: str | None = None


def _application_path(record_id: str) -> str:
    return f"/applications/{quote(record_id, safe='')}"


class RemoteClient:
    """Async client for the applications CRUD API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Base URL of the API, e.g. ``http://localhost:5001/api``.
            timeout: Seconds allowed for each call before it is cancelled.
            transport: Optional httpx transport (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "RemoteClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict | None = None,
        params: dict | None = None,
    ) -> RemoteResponse:
        try:
            async with asyncio.timeout(self.timeout):
                response = await self._client.request(
                    method, path, json=payload, params=params
                )
        except TimeoutError:
            return RemoteResponse(
                outcome=RemoteOutcome.NETWORK_ERROR,
                error=f"{method} {path} timed out after {self.timeout:g}s",
            )
        except httpx.HTTPError as e:
            return RemoteResponse(
                outcome=RemoteOutcome.NETWORK_ERROR,
                error=f"{method} {path} failed: {e!r}",
            )

        if response.status_code == 404:
            return RemoteResponse(
                outcome=RemoteOutcome.NOT_FOUND, status_code=response.status_code
            )

        if not response.is_success:
            return RemoteResponse(
                outcome=RemoteOutcome.SERVER_ERROR,
                status_code=response.status_code,
                error=f"{method} {path} returned {response.status_code}: {response.text[:200]}",
            )

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                return RemoteResponse(
                    outcome=RemoteOutcome.SERVER_ERROR,
                    status_code=response.status_code,
                    error=f"{method} {path} returned a malformed JSON body",
                )

        return RemoteResponse(
            outcome=RemoteOutcome.SUCCESS, status_code=response.status_code, data=data
        )

    async def list_applications(self) -> RemoteResponse:
        """GET /applications."""
        return await self._request("GET", "/applications")

    async def get_application(self, record_id: str) -> RemoteResponse:
        """GET /applications/{id}."""
        return await self._request("GET", _application_path(record_id))

    async def create_application(self, payload: dict) -> RemoteResponse:
        """POST /applications."""
        return await self._request("POST", "/applications", payload=payload)

    async def update_application(self, record_id: str, payload: dict) -> RemoteResponse:
        """PUT /applications/{id} with the full record."""
        return await self._request("PUT", _application_path(record_id), payload=payload)

    async def delete_application(self, record_id: str) -> RemoteResponse:
        """DELETE /applications/{id}."""
        return await self._request("DELETE", _application_path(record_id))

    async def check_health(self) -> HealthStatus:
        """Probe the API and its backing database.

        An HTTP 200 whose body does not report the database as connected is
        a failed probe. When the body has no ``mongodb`` field, a ``status``
        of ``ok`` counts as connected.

        Returns:
            HealthStatus describing the probe result.
        """
        # Cache-busting parameter for intermediaries
        response = await self._request(
            "GET", "/health", params={"t": int(time.time() * 1000)}
        )
        if not response.ok:
            return HealthStatus(
                connected=False,
                error=response.error or f"health check returned {response.outcome.value}",
            )

        data = response.data
        if not isinstance(data, dict):
            return HealthStatus(connected=False, error="health response is not an object")

        status = data.get("status")
        database = data.get("mongodb")
        if database is not None:
            connected = str(database).strip().lower() == DB_CONNECTED
        else:
            connected = str(status).strip().lower() == "ok"

        return HealthStatus(
            connected=connected,
            status=status,
            database=database,
            error=None if connected else "database is not connected",
        )
