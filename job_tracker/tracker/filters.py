"""Search, filtering, ordering and summary counts for application lists."""

from datetime import UTC, datetime

from job_tracker.tracker.models import (
    STATUS_ALL,
    ApplicationRecord,
    ApplicationStatus,
    FilterSpec,
    SortKey,
    SortOrder,
)

_EPOCH_MIN = datetime.min.replace(tzinfo=UTC)


def _matches_search(record: ApplicationRecord, term: str) -> bool:
    for value in (record.company_name, record.position, record.location):
        if value and term in value.lower():
            return True
    return False


def _record_date(record: ApplicationRecord) -> datetime:
    # Application date first, last update as fallback
    raw = record.application_date or record.last_updated
    if not raw:
        return _EPOCH_MIN
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return _EPOCH_MIN
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _sort_key(sort_by: SortKey):
    if sort_by == SortKey.COMPANY:
        return lambda r: (r.company_name or "").casefold()
    if sort_by == SortKey.STATUS:
        return lambda r: r.status.value
    return _record_date


def apply_filters(
    records: list[ApplicationRecord], spec: FilterSpec
) -> list[ApplicationRecord]:
    """Apply a FilterSpec to a list of records.

    The search term matches company name, position and location
    case-insensitively. The input list is not modified.

    Args:
        records: Records to filter.
        spec: Search, status and ordering to apply.

    Returns:
        A new, filtered and sorted list.
    """
    result = list(records)

    term = spec.search.strip().lower()
    if term:
        result = [r for r in result if _matches_search(r, term)]

    if spec.status != STATUS_ALL:
        result = [r for r in result if r.status.value == spec.status]

    result.sort(key=_sort_key(spec.sort_by), reverse=spec.sort_order == SortOrder.DESC)
    return result


def summarize(records: list[ApplicationRecord]) -> dict[str, int]:
    """Count records in total and per status."""
    counts = {"total": len(records)}
    for status in ApplicationStatus:
        counts[status.value] = 0
    for record in records:
        counts[record.status.value] += 1
    return counts
