import asyncio
import time
from uuid import UUID

import structlog

from calcrm.core.core import Service
from calcrm.core.modules.attachment.models import AttachmentInfo, UploadedFile
from calcrm.core.modules.attachment.storage import delete_record_files, write_attachment_file
from calcrm.core.modules.attachment.utils import get_attachment_storage_path
from calcrm.errors import ValidationError

logger = structlog.get_logger(__name__)

MAX_FILES_PER_REQUEST = 10
MAX_FILE_SIZE = 100 * 1024 * 1024


class AttachmentService(Service):
    """Stores uploaded files on disk for calibrations and gauges."""

    async def save_files(self, collection_name: str, record_id: UUID, files: list[UploadedFile]) -> list[AttachmentInfo]:
        """Write uploaded files to disk and return their metadata.

        Every file is checked against the limits before the first one is written.

        Raises:
            ValidationError: If too many files are sent or one of them is too large
        """
        if len(files) > MAX_FILES_PER_REQUEST:
            raise ValidationError(f"At most {MAX_FILES_PER_REQUEST} files can be uploaded at once")

        for file in files:
            if len(file.content) > MAX_FILE_SIZE:
                raise ValidationError(f"File '{file.filename}' exceeds the 100MB limit")

        uploaded_at_ms = int(time.time() * 1000)
        attachments: list[AttachmentInfo] = []
        for position, file in enumerate(files):
            relative_path = get_attachment_storage_path(collection_name, record_id, file.filename, uploaded_at_ms, position)
            file_path = await asyncio.to_thread(
                write_attachment_file, self.core.config.attachments_path, relative_path, file.content
            )
            attachments.append(
                AttachmentInfo(
                    file_name=file.filename,
                    file_path=str(file_path),
                    file_type=file.content_type,
                    file_size=len(file.content),
                )
            )
            logger.debug("attachment_saved", collection=collection_name, record_id=record_id, path=str(file_path))

        return attachments

    async def save_file(self, collection_name: str, record_id: UUID, file: UploadedFile) -> AttachmentInfo:
        [attachment] = await self.save_files(collection_name, record_id, [file])
        return attachment

    async def delete_files(self, collection_name: str, record_id: UUID) -> None:
        deleted = await asyncio.to_thread(delete_record_files, self.core.config.attachments_path, collection_name, record_id)
        if deleted:
            logger.debug("attachments_deleted", collection=collection_name, record_id=record_id)
