"""
Chat API endpoints.

Streaming and single-shot chat, regeneration, session management and the
model list. Streaming replies are Server-Sent Events: the handler validates
and persists the user turn first, then hands generation to a background task
that feeds an ``EventChannel`` drained by the response body.
"""

import asyncio
from functools import partial
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from streamchat.api.deps import AppSettings, ChatSvc, CurrentUser, LLMProvider, RegenerationSvc
from streamchat.core.logger import logger
from streamchat.models.chat import ChatRequest, ChatResponse, RegenerateRequest, encode_sse
from streamchat.services.chat_service import ChatService, ChatTurn
from streamchat.services.event_channel import EventChannel

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable buffering for nginx
}

# Generation tasks outlive the response when the client disconnects
_generation_tasks: set[asyncio.Task] = set()


def _on_generation_done(turn: ChatTurn, task: asyncio.Task) -> None:
    _generation_tasks.discard(task)
    if task.cancelled():
        logger.warning(f"Generation cancelled (session={turn.session_id}, mode={turn.mode})")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            f"Generation failed (session={turn.session_id}, mode={turn.mode}): {exc!r}",
            exc_info=exc,
        )


def _start_generation(
    service: ChatService,
    turn: ChatTurn,
    channel: EventChannel,
    model_id: Optional[str],
) -> asyncio.Task:
    task = asyncio.create_task(service.stream_turn(turn, channel, model_id=model_id))
    _generation_tasks.add(task)
    task.add_done_callback(partial(_on_generation_done, turn))
    return task


def _stream_response(
    http_request: Request,
    service: ChatService,
    turn: ChatTurn,
    model_id: Optional[str],
) -> StreamingResponse:
    channel = EventChannel()
    _start_generation(service, turn, channel, model_id)

    async def event_generator() -> AsyncGenerator[str, None]:
        """Generate Server-Sent Events for streaming response."""
        try:
            async for event in channel:
                if await http_request.is_disconnected():
                    logger.info(f"Client disconnected (session={turn.session_id}, mode={turn.mode})")
                    break
                yield encode_sse(event)
        finally:
            channel.disconnect()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post(
    "/chat",
    response_model=ChatResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def chat(
    request: ChatRequest,
    http_request: Request,
    user: CurrentUser,
    chat_service: ChatSvc,
):
    """
    Chat with the model.

    With ``stream`` set the reply is sent as Server-Sent Events ending in a
    single ``done`` event; otherwise the full reply is returned as JSON.
    """
    turn = await chat_service.prepare_chat(
        user.id,
        request.messages,
        session_id=request.session_id,
    )
    if request.stream:
        return _stream_response(http_request, chat_service, turn, request.model)
    return await chat_service.complete_turn(turn, model_id=request.model)


@router.post(
    "/messages/{message_id}/regenerate",
    response_model=ChatResponse,
    response_model_by_alias=True,
)
async def regenerate_message(
    message_id: int,
    http_request: Request,
    user: CurrentUser,
    regeneration_service: RegenerationSvc,
    request: Optional[RegenerateRequest] = None,
):
    """Replace an assistant reply with a freshly generated one."""
    request = request or RegenerateRequest()
    turn = await regeneration_service.prepare_regeneration(user.id, message_id)
    if request.stream:
        return _stream_response(http_request, regeneration_service, turn, request.model)
    return await regeneration_service.complete_turn(turn, model_id=request.model)


@router.get("/sessions")
async def list_sessions(
    user: CurrentUser,
    chat_service: ChatSvc,
):
    """List chat sessions for the current user."""
    sessions = await chat_service.list_sessions(user.id)
    return {
        "sessions": [
            {
                "id": s.id,
                "title": s.title,
                "created_at": s.created_at,
                "updated_at": s.updated_at,
            }
            for s in sessions
        ]
    }


@router.get("/sessions/{session_id}/messages")
async def get_session_messages(
    session_id: int,
    user: CurrentUser,
    chat_service: ChatSvc,
):
    """Get messages for a chat session."""
    messages = await chat_service.list_session_messages(user.id, session_id)
    return {
        "messages": [
            {
                "id": m.id,
                "role": m.role.value,
                "content": m.content,
                "reasoning": m.reasoning,
                "created_at": m.created_at,
                "liked": m.liked,
            }
            for m in messages
        ]
    }


@router.delete("/sessions/{session_id}")
@router.post("/sessions/{session_id}/delete")
async def delete_session(
    session_id: int,
    user: CurrentUser,
    chat_service: ChatSvc,
):
    """Delete a chat session and all of its messages."""
    await chat_service.delete_session(user.id, session_id)
    return {"msg": "Session deleted", "sessionId": session_id}


@router.post("/messages/{message_id}/like")
async def toggle_like(
    message_id: int,
    user: CurrentUser,
    chat_service: ChatSvc,
):
    """Toggle the liked flag of a message."""
    message = await chat_service.toggle_like(user.id, message_id)
    return {"msg": "OK", "messageId": message.id, "liked": message.liked}


@router.get("/models")
async def list_available_models(
    user: CurrentUser,
    llm_provider: LLMProvider,
    settings: AppSettings,
):
    """List available AI models for model selection."""
    return {
        "provider": settings.LLM_PROVIDER,
        "default_model_id": llm_provider.get_default_model(),
        "models": await llm_provider.list_models(),
    }
