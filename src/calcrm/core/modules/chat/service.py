import json
import time
from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID

import litellm
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from calcrm.core.core import Service
from calcrm.core.modules.chat.context import build_context
from calcrm.core.modules.chat.models import ChatLog, ChatMessage
from calcrm.core.modules.chat.prompts import build_system_prompt

logger = structlog.get_logger(__name__)

MAX_HISTORY_MESSAGES = 5
NOT_CONFIGURED_MESSAGE = "AI is not configured (missing OPENAI_API_KEY)."
STREAM_ERROR_MESSAGE = "\n[Error during stream.]"
DONE_EVENT = "data: [DONE]\n\n"


def sse_event(content: str) -> str:
    """Format a content chunk as a server-sent event."""
    return f"data: {json.dumps({'content': content}, ensure_ascii=False)}\n\n"


def trim_messages(messages: list[ChatMessage], max_messages: int = MAX_HISTORY_MESSAGES) -> list[ChatMessage]:
    """Keep only the most recent messages."""
    if len(messages) <= max_messages:
        return messages
    return messages[-max_messages:]


def last_user_message(messages: list[ChatMessage]) -> str | None:
    return next((m.content for m in reversed(messages) if m.role == "user"), None)


class ChatService(Service):
    """Streams assistant replies grounded in a sample of the CRM data."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._logs = database.get_collection("chat_logs")

    async def on_start(self) -> None:
        await self._logs.create_index([("created_at", -1)])
        await self._logs.create_index([("user_id", 1)])

    async def stream_chat(self, messages: list[ChatMessage], user_id: UUID) -> AsyncIterator[str]:
        """Yield the reply as SSE events, finishing with a [DONE] event.

        Errors after streaming has started cannot change the response status, so
        they are logged and reported to the client as a final content event.
        """
        config = self.core.config
        if not config.llm_api_key:
            yield sse_event(NOT_CONFIGURED_MESSAGE)
            return

        start_time = time.time()
        user_input = last_user_message(messages)
        intents: list[str] = []
        response_parts: list[str] = []
        error_message = None

        try:
            intents, context = await build_context(self.database, user_input) if user_input else ([], "")
            api_messages = [
                {"role": "system", "content": build_system_prompt(context)},
                *({"role": m.role, "content": m.content} for m in trim_messages(messages)),
            ]
            stream = await litellm.acompletion(
                model=config.llm_model,
                messages=api_messages,
                stream=True,
                max_tokens=config.llm_max_tokens,
                api_key=config.llm_api_key,
            )
            async for chunk in stream:
                delta = chunk.choices[0].delta.content if chunk.choices else None
                if delta:
                    response_parts.append(delta)
                    yield sse_event(delta)
            yield DONE_EVENT
        except Exception as e:
            error_message = str(e)
            logger.exception("chat_stream_failed", user_id=user_id)
            yield sse_event(STREAM_ERROR_MESSAGE)
        finally:
            log = ChatLog(
                user_id=user_id,
                user_input=user_input or "",
                intents=intents,
                response="".join(response_parts),
                model=config.llm_model,
                error_message=error_message,
                duration_ms=int((time.time() - start_time) * 1000),
            )
            await self._logs.insert_one(log.to_mongo())
