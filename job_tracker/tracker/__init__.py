"""Application record storage.

This module provides storage for job application records, using a remote
API when it is reachable and a local cache otherwise.

Public API:
- StorageCoordinator: Routes operations between the API and the local cache
- StorageResult: Result of a coordinator operation
- StorageOutcome: Enum describing where a result came from
- LocalCacheStore: Durable local copy of records and the list filter
- RemoteClient: HTTP client for the applications API
- ApplicationRecord: Data model for a job application
- ApplicationStatus: Enum for application status values
- FilterSpec: Search, status filter and ordering for the list
"""

from job_tracker.tracker.cache import LocalCacheStore
from job_tracker.tracker.coordinator import (
    StorageCoordinator,
    StorageOutcome,
    StorageResult,
)
from job_tracker.tracker.models import ApplicationRecord, ApplicationStatus, FilterSpec
from job_tracker.tracker.remote import RemoteClient

__all__ = [
    "StorageCoordinator",
    "StorageResult",
    "StorageOutcome",
    "LocalCacheStore",
    "RemoteClient",
    "ApplicationRecord",
    "ApplicationStatus",
    "FilterSpec",
]
