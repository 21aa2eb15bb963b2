"""Attachment helpers for resumes and cover letters.

Attachments are never stored as files by the tracker. They are either kept
as a storage path reported by the API, or embedded in the record as a
self-contained ``data:`` URL.
"""

import asyncio
import base64
import mimetypes
from pathlib import Path

from job_tracker.tracker.models import DATA_URL_PREFIX

DEFAULT_MIME_TYPE = "application/octet-stream"

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


class AttachmentError(Exception):
    """Raised when an attachment cannot be converted to a blob."""


async def file_to_data_url(path: str | Path) -> str:
    """Read a file and encode it as a base64 ``data:`` URL.

    The read happens in a worker thread so the event loop is not blocked.

    Args:
        path: Path to the file to embed.

    Returns:
        The encoded blob, e.g. ``data:application/pdf;base64,JVBERi0...``.

    Raises:
        AttachmentError: If the file cannot be read.
    """
    file_path = Path(path)
    try:
        content = await asyncio.to_thread(file_path.read_bytes)
    except OSError as e:
        raise AttachmentError(f"Could not read attachment {file_path}: {e}") from e

    mime_type = mimetypes.guess_type(file_path.name)[0] or DEFAULT_MIME_TYPE
    payload = base64.b64encode(content).decode("ascii")
    return f"{DATA_URL_PREFIX}{mime_type};base64,{payload}"


def is_data_url(value: str | None) -> bool:
    """Return True if the value is an embedded ``data:`` URL."""
    return bool(value) and value.startswith(DATA_URL_PREFIX)


def format_file_size(size: int) -> str:
    """Format a byte count for display (``0 Bytes``, ``1.5 KB``, ...)."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[index]}"


def get_file_extension(filename: str) -> str:
    """Return the extension without the dot, or an empty string."""
    return Path(filename).suffix.lstrip(".")
