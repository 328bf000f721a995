from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AttachmentInfo(BaseModel):
    """Metadata of a stored file, embedded in the owning record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file_name: str = Field(..., description="Original filename from the client")
    file_path: str = Field(..., description="Path of the stored file")
    file_type: str = Field(..., description="MIME type")
    file_size: int = Field(..., ge=0, description="Size in bytes")


class UploadedFile(BaseModel):
    """File received from the client, not yet stored."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
