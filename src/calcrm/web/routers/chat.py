from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from calcrm.core.modules.chat.models import ChatRequest
from calcrm.web.deps import AppDep, AuthTokenDep
from calcrm.web.openapi import ErrorResponse

router = APIRouter(tags=["ai-chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post(
    "/ai-chat",
    summary="Chat with the assistant",
    description=(
        "Send the conversation (`role` user or assistant, string `content`) and receive the reply as "
        'server-sent events: `data: {"content": "..."}` chunks followed by `data: [DONE]`. '
        "Only the last 5 messages are forwarded to the model."
    ),
    operation_id="aiChat",
    response_class=StreamingResponse,
    responses={
        200: {"description": "Event stream", "content": {"text/event-stream": {}}},
        400: {"model": ErrorResponse, "description": "Invalid messages"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def ai_chat(data: ChatRequest, app: AppDep, auth_token: AuthTokenDep) -> StreamingResponse:
    stream = await app.stream_chat(auth_token, data.messages)
    return StreamingResponse(stream, media_type="text/event-stream", headers=SSE_HEADERS)
