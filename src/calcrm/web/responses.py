"""Response envelope shared by every JSON endpoint: `{success, message, data?}`."""

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Successful response without payload."""

    success: Literal[True] = True
    message: str = Field(..., description="Human-readable outcome")


T = TypeVar("T")


class DataResponse(MessageResponse, Generic[T]):
    """Successful response with payload."""

    data: T
