"""Utility functions for attachment handling."""

import re
from pathlib import Path
from uuid import UUID

MAX_FILENAME_LENGTH = 100


def get_attachment_storage_path(
    collection_name: str, record_id: UUID, filename: str, uploaded_at_ms: int, position: int = 0
) -> Path:
    """Calculate storage path for an uploaded file, relative to the attachments directory.

    Files are grouped by the owning record's internal id, which survives
    identifier renumbering, and prefixed with the upload time in milliseconds
    and the file's position in its upload batch.
    """
    return Path(collection_name) / str(record_id) / f"{uploaded_at_ms}-{position}-{sanitize_filename(filename)}"


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe filesystem storage on Unix-like systems.

    Removes dangerous characters, prevents path traversal, and keeps the
    file extension readable.
    """
    # Remove path components to prevent traversal attacks
    filename = Path(filename).name

    # No hidden files
    filename = filename.lstrip(".")

    # Allow only word characters, spaces, dots, and hyphens
    sanitized = re.sub(r"[^\w\s.-]", "_", filename)
    sanitized = re.sub(r"_+", "_", sanitized)
    sanitized = re.sub(r"\s+", " ", sanitized)

    if len(sanitized) > MAX_FILENAME_LENGTH:
        name, dot, ext = sanitized.rpartition(".")
        if dot and name:
            max_name_len = MAX_FILENAME_LENGTH - 4 - len(ext)
            sanitized = f"{name[:max_name_len]}.{ext}" if max_name_len > 0 else f"file.{ext}"
        else:
            sanitized = sanitized[:MAX_FILENAME_LENGTH]

    # Only whitespace/underscores/dots/hyphens left
    if not sanitized or not re.sub(r"[\s._-]", "", sanitized):
        sanitized = "unnamed_file"

    return sanitized
