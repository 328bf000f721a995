"""Request bodies that arrive either as JSON or as multipart forms with files."""

import json
from typing import Any

from fastapi import Request
from starlette.datastructures import UploadFile

from calcrm.core.modules.attachment.models import UploadedFile
from calcrm.errors import ValidationError


async def to_uploaded_file(upload: UploadFile) -> UploadedFile:
    return UploadedFile(
        filename=upload.filename or "unnamed",
        content=await upload.read(),
        content_type=upload.content_type or "application/octet-stream",
    )


async def read_payload(request: Request, file_field: str) -> tuple[dict[str, Any], list[UploadedFile]]:
    """Read the record fields and any uploaded files from a JSON or multipart body.

    Empty multipart values are dropped so optional fields keep their defaults.

    Raises:
        ValidationError: If a JSON body is malformed or not an object
    """
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" not in content_type:
        body = await request.body()
        try:
            payload = json.loads(body) if body else {}
        except ValueError as e:
            raise ValidationError("Malformed JSON body") from e
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return payload, []

    form = await request.form()
    fields: dict[str, Any] = {}
    files: list[UploadedFile] = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key == file_field and value.filename:
                files.append(await to_uploaded_file(value))
        elif value != "" or key == "gaugeId":  # A blank gaugeId clears the gauge
            fields[key] = value
    return fields, files
