"""Pydantic models (schemas) for the application."""

from streamchat.models.enums import MessageRole
from streamchat.models.chat import (
    ChatReply,
    ChatRequest,
    ChatResponse,
    Completion,
    DeltaEvent,
    DoneEvent,
    Fragment,
    RegenerateRequest,
    StreamEvent,
    ThinkingEvent,
    encode_sse,
)
from streamchat.models.chat_session import ChatMessage, ChatSession

__all__ = [
    # Enums
    "MessageRole",
    # Chat
    "ChatRequest",
    "ChatResponse",
    "ChatReply",
    "RegenerateRequest",
    "Fragment",
    "Completion",
    "DeltaEvent",
    "ThinkingEvent",
    "DoneEvent",
    "StreamEvent",
    "encode_sse",
    # Sessions
    "ChatSession",
    "ChatMessage",
]
