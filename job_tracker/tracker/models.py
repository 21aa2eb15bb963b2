"""Data models for the job application tracker."""

import uuid
from dataclasses import dataclass, fields, replace
from datetime import UTC, datetime
from enum import Enum

# Status filter value that matches every record
STATUS_ALL = "all"

DATA_URL_PREFIX = "data:"


class ApplicationStatus(str, Enum):
    """Status of a job application."""

    SAVED = "saved"
    APPLIED = "applied"


class SortKey(str, Enum):
    """Field used to order the application list."""

    DATE = "date"
    COMPANY = "company"
    STATUS = "status"


class SortOrder(str, Enum):
    """Direction of the application list ordering."""

    ASC = "asc"
    DESC = "desc"


def generate_id() -> str:
    """Generate a new record identifier."""
    return uuid.uuid4().hex


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_status(value: str | ApplicationStatus) -> ApplicationStatus:
    """Convert a raw status value into an ApplicationStatus.

    Raises:
        ValueError: If the value is not a known status.
    """
    if isinstance(value, ApplicationStatus):
        return value
    try:
        return ApplicationStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in ApplicationStatus)
        raise ValueError(f"Invalid status: {value!r}. Must be one of: {allowed}") from None


# Attribute name -> wire (JSON) key
_WIRE_KEYS = {
    "id": "id",
    "company_name": "companyName",
    "position": "position",
    "location": "location",
    "job_description": "jobDescription",
    "application_date": "applicationDate",
    "status": "status",
    "notes": "notes",
    "salary": "salary",
    "url": "url",
    "contact_name": "contactName",
    "contact_email": "contactEmail",
    "resume_path": "resumePath",
    "cover_letter_path": "coverLetterPath",
    "last_updated": "lastUpdated",
}


@dataclass
class ApplicationRecord:
    """A single tracked job application.

    Attributes:
        id: Unique identifier, assigned once on creation.
        company_name: Name of the company.
        position: Title of the position.
        location: Job location.
        job_description: Free-text description of the job.
        application_date: Date applied (``YYYY-MM-DD``), stored as a string.
        status: Current status of the application.
        notes: Free-text notes.
        salary: Salary text as entered.
        url: Link to the job posting.
        contact_name: Recruiter or contact name.
        contact_email: Recruiter or contact email.
        resume_path: Storage path or ``data:`` URL of the resume.
        cover_letter_path: Storage path or ``data:`` URL of the cover letter.
        last_updated: ISO timestamp refreshed on every create and update.
    """

    id: str = ""
    company_name: str | None = None
    position: str | None = None
    location: str | None = None
    job_description: str | None = None
    application_date: str | None = None
    status: ApplicationStatus = ApplicationStatus.APPLIED
    notes: str | None = None
    salary: str | None = None
    url: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    resume_path: str | None = None
    cover_letter_path: str | None = None
    last_updated: str = ""

    def __post_init__(self) -> None:
        self.status = parse_status(self.status)

    @classmethod
    def new(cls, **values) -> "ApplicationRecord":
        """Create a record with a fresh identifier and timestamp."""
        values.setdefault("id", generate_id())
        values["last_updated"] = now_iso()
        return cls(**values)

    def touch(self) -> "ApplicationRecord":
        """Return a copy with ``last_updated`` set to the current time.

        Whatever timestamp the record carried is discarded.
        """
        return replace(self, last_updated=now_iso())

    def with_identity(self) -> "ApplicationRecord":
        """Return a copy ready to be stored as a new record.

        Any identifier or timestamp on the draft is replaced by a freshly
        generated one.
        """
        return replace(self, id=generate_id(), last_updated=now_iso())

    def without_file_references(self) -> "ApplicationRecord":
        """Drop attachment references that are not self-contained blobs."""
        return replace(
            self,
            resume_path=_keep_blob(self.resume_path),
            cover_letter_path=_keep_blob(self.cover_letter_path),
        )

    def to_dict(self) -> dict:
        """Serialize the record to its JSON wire form.

        Unset optional fields are omitted.

        Returns:
            Dictionary keyed by the camelCase wire names.
        """
        data: dict = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            data[_WIRE_KEYS[f.name]] = value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ApplicationRecord":
        """Deserialize a record from its JSON wire form.

        Unknown keys (such as database bookkeeping fields) are ignored.

        Args:
            data: Dictionary containing record data.

        Returns:
            ApplicationRecord instance.

        Raises:
            ValueError: If the data is not an object or the status is invalid.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")

        values = {}
        for name, key in _WIRE_KEYS.items():
            if key in data and data[key] is not None:
                values[name] = data[key]

        values["id"] = str(values.get("id", ""))
        values["last_updated"] = str(values.get("last_updated", ""))
        return cls(**values)


def _keep_blob(value: str | None) -> str | None:
    if value and value.startswith(DATA_URL_PREFIX):
        return value
    return None


@dataclass(frozen=True)
class FilterSpec:
    """Search, status filter and ordering for the application list."""

    search: str = ""
    status: str = STATUS_ALL
    sort_by: SortKey = SortKey.DATE
    sort_order: SortOrder = SortOrder.DESC

    def __post_init__(self) -> None:
        status = self.status.value if isinstance(self.status, Enum) else str(self.status)
        if status != STATUS_ALL:
            status = parse_status(status).value
        object.__setattr__(self, "status", status)
        object.__setattr__(self, "sort_by", SortKey(self.sort_by))
        object.__setattr__(self, "sort_order", SortOrder(self.sort_order))

    def to_dict(self) -> dict:
        return {
            "search": self.search,
            "status": self.status,
            "sortBy": self.sort_by.value,
            "sortOrder": self.sort_order.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FilterSpec":
        """Build a filter from its stored form, defaulting missing keys.

        Raises:
            ValueError: If a value is not one of the allowed choices.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")
        return cls(
            search=str(data.get("search") or ""),
            status=data.get("status") or STATUS_ALL,
            sort_by=data.get("sortBy") or SortKey.DATE,
            sort_order=data.get("sortOrder") or SortOrder.DESC,
        )
