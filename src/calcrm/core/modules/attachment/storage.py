"""File storage operations for attachments."""

import shutil
from pathlib import Path
from uuid import UUID


def write_attachment_file(attachments_path: str, relative_path: Path, content: bytes) -> Path:
    """Write attachment file to disk.

    Args:
        attachments_path: Base path for attachments storage
        relative_path: Path inside the attachments directory
        content: File content bytes

    Returns:
        Path to the written file
    """
    file_path = Path(attachments_path) / relative_path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(content)
    return file_path


def delete_record_files(attachments_path: str, collection_name: str, record_id: UUID) -> bool:
    """Remove every stored file of a record. Returns False when there was nothing to remove."""
    folder = Path(attachments_path) / collection_name / str(record_id)
    if not folder.exists():
        return False
    shutil.rmtree(folder)
    return True
