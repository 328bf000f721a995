from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from calcrm.core.db import MongoModel
from calcrm.utils import now


class ChatMessage(BaseModel):
    """One turn of the conversation sent by the client."""

    role: Literal["user", "assistant"]
    content: str = Field(..., strict=True)


class ChatRequest(BaseModel):
    """Conversation so far, oldest message first."""

    messages: list[ChatMessage] = Field(..., min_length=1)


class ChatLog(MongoModel):
    """Log of one streamed assistant reply."""

    user_id: UUID
    user_input: str
    intents: list[str]
    response: str
    model: str
    error_message: str | None = None
    duration_ms: int
    created_at: datetime = Field(default_factory=now)
