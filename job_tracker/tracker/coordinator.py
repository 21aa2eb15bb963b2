"""Storage coordinator for application records.

This module provides the StorageCoordinator class which handles:
- Routing each operation to the remote API or the local cache
- Gating remote calls behind a cached connectivity probe
- Falling back to the local cache when the API is unreachable
- Mirroring successful remote reads and writes into the local cache

The local cache is a write-behind shadow of the remote store and a read
fallback. The two tiers are never reconciled automatically.
"""

import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from job_tracker.config.settings import StorageConfig
from job_tracker.tracker.cache import CacheWriteError, LocalCacheStore
from job_tracker.tracker.models import ApplicationRecord, FilterSpec
from job_tracker.tracker.remote import (
    HealthStatus,
    RemoteClient,
    RemoteOutcome,
    RemoteResponse,
)

logger = logging.getLogger(__name__)

CONNECTION_NOTICE = "Saved locally due to connection issue"


class StorageOutcome(str, Enum):
    """Where an operation was served from."""

    REMOTE = "remote"
    LOCAL = "local"
    # Remote was enabled but unreachable; served by the local cache
    LOCAL_FALLBACK = "local_fallback"
    NOT_FOUND = "not_found"


@dataclass
class StorageResult:
    """Result of a coordinator operation.

    Attributes:
        outcome: Which tier served the operation, or NOT_FOUND.
        value: The record, record list or identifier produced, if any.
        warnings: Non-fatal problems, such as a failed local cache write.
    """

    outcome: StorageOutcome
    value: Any = None
    warnings: list[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.outcome != StorageOutcome.NOT_FOUND

    @property
    def connection_issue(self) -> bool:
        """True if the result was produced locally because the API failed."""
        return self.outcome == StorageOutcome.LOCAL_FALLBACK


class StorageCoordinator:
    """Remote-first storage with a local cache fallback.

    Operations never raise for remote or cache faults. Remote faults mark
    the coordinator as disconnected and the operation is served by the
    local cache instead; the next operation probes the API again.
    """

    def __init__(
        self,
        config: StorageConfig,
        cache: LocalCacheStore,
        remote: RemoteClient | None = None,
    ):
        """Initialize the coordinator.

        Args:
            config: Routing configuration.
            cache: The local cache store.
            remote: Remote client to use; built from the config when omitted
                and remote storage is enabled.
        """
        self.config = config
        self.cache = cache
        if remote is None and config.remote_enabled:
            remote = RemoteClient(config.base_url, timeout=config.timeout_seconds)
        self.remote = remote if config.remote_enabled else None

        # None until the first probe
        self._connected: bool | None = None

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None

    @property
    def connected(self) -> bool:
        return bool(self._connected)

    async def initialize(self) -> None:
        """Prepare the local cache."""
        await self.cache.initialize()

    async def close(self) -> None:
        """Release the cache connection and the HTTP client."""
        await self.cache.close()
        if self.remote is not None:
            await self.remote.close()

    async def __aenter__(self) -> "StorageCoordinator":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # Connectivity

    async def check_connection(self) -> HealthStatus:
        """Probe the API now, regardless of the cached connection state."""
        if self.remote is None:
            return HealthStatus(connected=False, error="remote storage is disabled")

        health = await self.remote.check_health()
        if health.connected:
            await self._mark_connected()
        else:
            await self._mark_disconnected(health.error or "health check failed")
        return health

    async def _ensure_connected(self) -> bool:
        """Return True if remote calls should be attempted.

        A successful probe is remembered until a remote call fails; until
        then no further probes are made.
        """
        if self.remote is None:
            return False
        if self._connected:
            return True
        health = await self.check_connection()
        return health.connected

    async def _mark_connected(self) -> None:
        if not self._connected:
            logger.info("Connected to applications API at %s", self.config.base_url)
            await self.cache.set_connection_status(True)
        self._connected = True

    async def _mark_disconnected(self, reason: str) -> None:
        if self._connected is False:
            logger.debug("Applications API still unavailable: %s", reason)
        else:
            logger.warning("Applications API unavailable, using local cache: %s", reason)
            await self.cache.set_connection_status(False)
        self._connected = False

    async def _backup(self, write: Awaitable[Any]) -> None:
        """Mirror a remote result into the local cache, ignoring failures."""
        try:
            await write
        except CacheWriteError as e:
            logger.warning("Local backup failed: %s", e)

    def _parse_record(self, data: Any) -> ApplicationRecord | None:
        try:
            return ApplicationRecord.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring invalid application from API: %s", e)
            return None

    def _describe(self, response: RemoteResponse) -> str:
        return response.error or f"unexpected {response.outcome.value} response"

    # Operations

    async def list_all(self) -> StorageResult:
        """List all application records."""
        fallback = self.remote_enabled
        if await self._ensure_connected():
            response = await self.remote.list_applications()
            if response.ok and isinstance(response.data, list):
                records = [
                    record
                    for record in map(self._parse_record, response.data)
                    if record is not None
                ]
                if not records:
                    cached = await self.cache.read_records()
                    if cached:
                        # Don't regress the user to an empty list
                        logger.info(
                            "API returned no applications; showing %d cached",
                            len(cached),
                        )
                        return StorageResult(StorageOutcome.LOCAL, cached)
                await self._backup(self.cache.write_records(records))
                return StorageResult(StorageOutcome.REMOTE, records)

            await self._mark_disconnected(self._describe(response))

        records = await self.cache.read_records()
        return StorageResult(self._local_outcome(fallback), records)

    async def get_by_id(self, record_id: str) -> StorageResult:
        """Get a single record by identifier.

        A record the API does not know is looked up in the local cache, as
        for update and delete, so records saved during an outage stay
        reachable.
        """
        fallback = self.remote_enabled
        if await self._ensure_connected():
            response = await self.remote.get_application(record_id)
            record = self._parse_record(response.data) if response.ok else None
            if record is not None:
                await self._backup(self.cache.upsert_record(record))
                return StorageResult(StorageOutcome.REMOTE, record)

            if response.outcome == RemoteOutcome.NOT_FOUND:
                fallback = False
            else:
                await self._mark_disconnected(self._describe(response))

        record = await self.cache.get_record(record_id)
        if record is None:
            return StorageResult(StorageOutcome.NOT_FOUND)
        return StorageResult(self._local_outcome(fallback), record)

    async def create(self, record: ApplicationRecord) -> StorageResult:
        """Store a new record.

        The record always gets a newly generated identifier and a fresh
        ``last_updated`` timestamp; values on the draft are ignored.

        Returns:
            StorageResult whose value is the stored record.
        """
        new_record = record.with_identity()

        fallback = self.remote_enabled
        if await self._ensure_connected():
            response = await self.remote.create_application(new_record.to_dict())
            if response.ok:
                stored = (
                    self._parse_record(response.data)
                    if isinstance(response.data, dict)
                    else None
                ) or new_record
                await self._backup(self.cache.upsert_record(stored))
                return StorageResult(StorageOutcome.REMOTE, stored)

            await self._mark_disconnected(self._describe(response))

        warnings = []
        try:
            await self.cache.add_record(new_record)
        except CacheWriteError as e:
            warnings.append(str(e))
        return StorageResult(self._local_outcome(fallback), new_record, warnings)

    async def update(self, record: ApplicationRecord) -> StorageResult:
        """Replace an existing record, matched by identifier.

        Returns:
            StorageResult whose value is the stored record, or NOT_FOUND
            if no record has that identifier.
        """
        if not record.id:
            return StorageResult(StorageOutcome.NOT_FOUND)

        updated = record.touch()

        fallback = self.remote_enabled
        if await self._ensure_connected():
            response = await self.remote.update_application(
                updated.id, updated.to_dict()
            )
            if response.ok:
                stored = (
                    self._parse_record(response.data)
                    if isinstance(response.data, dict)
                    else None
                ) or updated
                await self._backup(self.cache.upsert_record(stored))
                return StorageResult(StorageOutcome.REMOTE, stored)

            if response.outcome == RemoteOutcome.NOT_FOUND:
                # Not on the server: it may only exist locally
                fallback = False
            else:
                await self._mark_disconnected(self._describe(response))

        warnings = []
        try:
            found = await self.cache.replace_record(updated)
        except CacheWriteError as e:
            found = True
            warnings.append(str(e))

        if not found:
            return StorageResult(StorageOutcome.NOT_FOUND)
        return StorageResult(self._local_outcome(fallback), updated, warnings)

    async def delete(self, record_id: str) -> StorageResult:
        """Delete a record by identifier.

        Returns:
            StorageResult whose value is the deleted identifier, or
            NOT_FOUND if no record has that identifier.
        """
        fallback = self.remote_enabled
        if await self._ensure_connected():
            response = await self.remote.delete_application(record_id)
            if response.ok:
                await self._backup(self.cache.remove_record(record_id))
                return StorageResult(StorageOutcome.REMOTE, record_id)

            if response.outcome == RemoteOutcome.NOT_FOUND:
                fallback = False
            else:
                await self._mark_disconnected(self._describe(response))

        warnings = []
        try:
            found = await self.cache.remove_record(record_id)
        except CacheWriteError as e:
            found = True
            warnings.append(str(e))

        if not found:
            return StorageResult(StorageOutcome.NOT_FOUND)
        return StorageResult(self._local_outcome(fallback), record_id, warnings)

    # Filter

    async def load_filter(self) -> FilterSpec:
        """Load the saved list filter."""
        return await self.cache.read_filter()

    async def save_filter(self, spec: FilterSpec) -> StorageResult:
        """Persist the list filter in the local cache."""
        warnings = []
        try:
            await self.cache.write_filter(spec)
        except CacheWriteError as e:
            warnings.append(str(e))
        return StorageResult(StorageOutcome.LOCAL, spec, warnings)

    def _local_outcome(self, fallback: bool) -> StorageOutcome:
        return StorageOutcome.LOCAL_FALLBACK if fallback else StorageOutcome.LOCAL
