"""Main entry point for the job tracker CLI."""

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

from job_tracker import __version__
from job_tracker.config.settings import Settings, get_settings
from job_tracker.tracker.cache import LocalCacheStore
from job_tracker.tracker.coordinator import (
    CONNECTION_NOTICE,
    StorageCoordinator,
    StorageResult,
)
from job_tracker.tracker.files import AttachmentError, file_to_data_url
from job_tracker.tracker.filters import apply_filters, summarize
from job_tracker.tracker.models import (
    STATUS_ALL,
    ApplicationRecord,
    ApplicationStatus,
    SortKey,
    SortOrder,
)
from job_tracker.utils.logging import configure_logging

STATUS_CHOICES = [s.value for s in ApplicationStatus]

# (option, record attribute, help)
RECORD_FIELDS = [
    ("--company", "company_name", "Company name"),
    ("--position", "position", "Position / job title"),
    ("--location", "location", "Job location"),
    ("--description", "job_description", "Job description"),
    ("--date", "application_date", "Application date (YYYY-MM-DD)"),
    ("--notes", "notes", "Free-text notes"),
    ("--salary", "salary", "Salary"),
    ("--url", "url", "Link to the job posting"),
    ("--contact-name", "contact_name", "Contact name"),
    ("--contact-email", "contact_email", "Contact email"),
]


def _add_record_arguments(parser: argparse.ArgumentParser, *, editing: bool) -> None:
    for option, dest, help_text in RECORD_FIELDS:
        parser.add_argument(option, dest=dest, default=None, help=help_text)
    parser.add_argument(
        "--status",
        choices=STATUS_CHOICES,
        default=None if editing else ApplicationStatus.APPLIED.value,
        help="Application status",
    )
    parser.add_argument(
        "--resume",
        type=Path,
        default=None,
        help="Resume file to embed in the record",
    )
    parser.add_argument(
        "--cover-letter",
        type=Path,
        default=None,
        help="Cover letter file to embed in the record",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="job-tracker",
        description="Track job applications, with a local cache when the API is offline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m job_tracker add --company Acme --position "Backend Engineer"
  python -m job_tracker list --status applied --sort company --order asc
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the log level (overrides settings)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Override local cache path (defaults to settings)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
    )

    list_parser = subparsers.add_parser("list", help="List applications")
    list_parser.add_argument("--search", default=None, help="Search company, position, location")
    list_parser.add_argument(
        "--status",
        choices=[STATUS_ALL, *STATUS_CHOICES],
        default=None,
        help="Only show applications with this status",
    )
    list_parser.add_argument(
        "--sort",
        choices=[k.value for k in SortKey],
        default=None,
        help="Sort key",
    )
    list_parser.add_argument(
        "--order",
        choices=[o.value for o in SortOrder],
        default=None,
        help="Sort direction",
    )
    list_parser.add_argument(
        "--save-filter",
        action="store_true",
        help="Remember these filter options for later listings",
    )

    show_parser = subparsers.add_parser("show", help="Show one application")
    show_parser.add_argument("id", help="Application identifier")

    add_parser = subparsers.add_parser("add", help="Add an application")
    _add_record_arguments(add_parser, editing=False)

    edit_parser = subparsers.add_parser("edit", help="Edit an application")
    edit_parser.add_argument("id", help="Application identifier")
    _add_record_arguments(edit_parser, editing=True)

    delete_parser = subparsers.add_parser("delete", help="Delete an application")
    delete_parser.add_argument("id", help="Application identifier")

    subparsers.add_parser("stats", help="Show application counts")
    subparsers.add_parser("health", help="Check the applications API")

    return parser


def _format_line(record: ApplicationRecord) -> str:
    company = record.company_name or "(no company)"
    position = f" - {record.position}" if record.position else ""
    location = f" ({record.location})" if record.location else ""
    date = record.application_date or record.last_updated[:10]
    return f"{record.id}  {record.status.value:<8} {date}  {company}{position}{location}"


def _report(result: StorageResult) -> None:
    if result.connection_issue:
        print(CONNECTION_NOTICE)
    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)


async def _record_values(parsed: argparse.Namespace) -> dict:
    """Collect record fields given on the command line."""
    values = {}
    for _, dest, _ in RECORD_FIELDS:
        value = getattr(parsed, dest)
        if value is not None:
            values[dest] = value
    if parsed.status is not None:
        values["status"] = ApplicationStatus(parsed.status)
    if parsed.resume is not None:
        values["resume_path"] = await file_to_data_url(parsed.resume)
    if parsed.cover_letter is not None:
        values["cover_letter_path"] = await file_to_data_url(parsed.cover_letter)
    return values


async def _run_command(parsed: argparse.Namespace, settings: Settings) -> int:
    cache = LocalCacheStore(parsed.db or settings.cache_db_path)
    async with StorageCoordinator(settings.storage_config(), cache) as coordinator:
        if parsed.command == "list":
            spec = await coordinator.load_filter()
            overrides = {
                "search": parsed.search,
                "status": parsed.status,
                "sort_by": parsed.sort,
                "sort_order": parsed.order,
            }
            spec = replace(spec, **{k: v for k, v in overrides.items() if v is not None})
            if parsed.save_filter:
                _report(await coordinator.save_filter(spec))

            result = await coordinator.list_all()
            records = apply_filters(result.value, spec)
            for record in records:
                print(_format_line(record))
            print(f"{len(records)} of {len(result.value)} applications")
            return 0

        if parsed.command == "show":
            result = await coordinator.get_by_id(parsed.id)
            if not result.found:
                print("Not found", file=sys.stderr)
                return 1
            print(json.dumps(result.value.to_dict(), indent=2))
            return 0

        if parsed.command == "add":
            try:
                values = await _record_values(parsed)
            except AttachmentError as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            result = await coordinator.create(ApplicationRecord(**values))
            _report(result)
            print(f"Added {result.value.id}")
            return 0

        if parsed.command == "edit":
            current = await coordinator.get_by_id(parsed.id)
            if not current.found:
                print("Not found", file=sys.stderr)
                return 1
            try:
                values = await _record_values(parsed)
            except AttachmentError as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            result = await coordinator.update(replace(current.value, **values))
            if not result.found:
                print("Not found", file=sys.stderr)
                return 1
            _report(result)
            print(f"Updated {result.value.id}")
            return 0

        if parsed.command == "delete":
            result = await coordinator.delete(parsed.id)
            if not result.found:
                print("Not found", file=sys.stderr)
                return 1
            _report(result)
            print(f"Deleted {parsed.id}")
            return 0

        if parsed.command == "stats":
            result = await coordinator.list_all()
            for name, count in summarize(result.value).items():
                print(f"{name}: {count}")
            return 0

        if parsed.command == "health":
            health = await coordinator.check_connection()
            if health.connected:
                print(f"Connected ({settings.api_url})")
                return 0
            print(f"Not connected: {health.error}")
            return 1

    print(f"Unknown command: {parsed.command}", file=sys.stderr)
    return 1


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Load settings
    try:
        settings = get_settings()
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    log_level = parsed.log_level or settings.log_level
    configure_logging(level=log_level)

    # If no command specified, show help
    if parsed.command is None:
        parser.print_help()
        return 0

    return asyncio.run(_run_command(parsed, settings))


if __name__ == "__main__":
    sys.exit(main())
