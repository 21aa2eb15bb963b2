"""Local cache store for application records.

This module keeps a durable copy of the application list in a small SQLite
key-value table. Values are JSON strings stored under well-known keys, so
the whole record list is read and written as one unit.
"""

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from job_tracker.tracker.models import ApplicationRecord, FilterSpec

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""

UPSERT_SQL = """
INSERT INTO kv (key, value) VALUES (?, ?)
ON CONFLICT(key) DO UPDATE SET value = excluded.value
"""

# Well-known keys
RECORDS_KEY = "jobs"
FILTER_KEY = "filter"
CONNECTION_KEY = "remote_connected"


class CacheWriteError(Exception):
    """Raised when the cache cannot persist a value."""


class LocalCacheStore:
    """Async SQLite-backed key-value cache.

    Reads never raise: a missing or unparseable value reads as empty.
    Writes raise CacheWriteError so callers can report a warning.
    """

    def __init__(self, db_path: Path | str):
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None

    @asynccontextmanager
    async def _get_connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get a database connection.

        Yields:
            An aiosqlite connection.
        """
        if self._connection is None:
            self._connection = await aiosqlite.connect(self.db_path)
        yield self._connection

    async def initialize(self) -> None:
        """Initialize the database, creating the table if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        async with self._get_connection() as conn:
            await conn.execute(CREATE_TABLE_SQL)
            await conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def _get_value(self, key: str) -> str | None:
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = await cursor.fetchone()
        return row[0] if row is not None else None

    async def _set_value(self, key: str, value: str) -> None:
        async with self._get_connection() as conn:
            await conn.execute(UPSERT_SQL, (key, value))
            await conn.commit()

    async def _load_json(self, key: str) -> object | None:
        """Read and decode a stored JSON value, or None if unusable."""
        try:
            raw = await self._get_value(key)
        except aiosqlite.Error as e:
            logger.warning("Could not read %r from local cache: %s", key, e)
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring malformed %r entry in local cache: %s", key, e)
            return None

    async def _store_json(self, key: str, payload: object) -> None:
        try:
            await self._set_value(key, json.dumps(payload))
        except (aiosqlite.Error, TypeError, ValueError) as e:
            logger.warning("Could not write %r to local cache: %s", key, e)
            raise CacheWriteError(f"Local cache write failed for {key!r}: {e}") from e

    # Records

    async def read_records(self) -> list[ApplicationRecord]:
        """Read the cached record list.

        Returns:
            The cached records; empty if nothing is stored or the stored
            value cannot be parsed. Individual invalid entries are skipped.
        """
        data = await self._load_json(RECORDS_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring local cache records: expected a list")
            return []

        records = []
        for item in data:
            try:
                records.append(ApplicationRecord.from_dict(item))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping invalid cached record: %s", e)
        return records

    async def write_records(self, records: list[ApplicationRecord]) -> None:
        """Overwrite the cached record list.

        Attachment references that are not embedded blobs are dropped.

        Raises:
            CacheWriteError: If the list could not be persisted.
        """
        payload = [r.without_file_references().to_dict() for r in records]
        await self._store_json(RECORDS_KEY, payload)

    async def get_record(self, record_id: str) -> ApplicationRecord | None:
        """Get a cached record by identifier, or None if absent."""
        for record in await self.read_records():
            if record.id == record_id:
                return record
        return None

    async def add_record(self, record: ApplicationRecord) -> None:
        """Append a record to the cached list."""
        records = await self.read_records()
        records.append(record)
        await self.write_records(records)

    async def replace_record(self, record: ApplicationRecord) -> bool:
        """Replace the cached record with the same identifier.

        Returns:
            True if a record was replaced, False if none matched (no write).
        """
        records = await self.read_records()
        found = False
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                found = True
        if not found:
            return False
        await self.write_records(records)
        return True

    async def upsert_record(self, record: ApplicationRecord) -> None:
        """Replace the matching cached record, or append it if absent."""
        if not await self.replace_record(record):
            await self.add_record(record)

    async def remove_record(self, record_id: str) -> bool:
        """Remove a record from the cached list.

        Returns:
            True if a record was removed, False if none matched (no write).
        """
        records = await self.read_records()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return False
        await self.write_records(remaining)
        return True

    # Filter

    async def read_filter(self) -> FilterSpec:
        """Read the saved list filter, or the default filter."""
        data = await self._load_json(FILTER_KEY)
        if data is None:
            return FilterSpec()
        try:
            return FilterSpec.from_dict(data)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring invalid saved filter: %s", e)
            return FilterSpec()

    async def write_filter(self, spec: FilterSpec) -> None:
        """Persist the list filter.

        Raises:
            CacheWriteError: If the filter could not be persisted.
        """
        await self._store_json(FILTER_KEY, spec.to_dict())

    # Connectivity

    async def set_connection_status(self, connected: bool) -> None:
        """Record the last known remote connectivity (best effort)."""
        try:
            await self._set_value(CONNECTION_KEY, "true" if connected else "false")
        except aiosqlite.Error as e:
            logger.warning("Could not record connection status: %s", e)

    async def get_connection_status(self) -> bool | None:
        """Return the last recorded remote connectivity, if any."""
        try:
            raw = await self._get_value(CONNECTION_KEY)
        except aiosqlite.Error as e:
            logger.warning("Could not read connection status: %s", e)
            return None
        if raw is None:
            return None
        return raw == "true"
