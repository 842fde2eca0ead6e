"""
Chat model definitions.

Request/response schemas for the chat endpoints, the normalized model output
(``Fragment``, ``Completion``) and the tagged events written to the stream.
"""

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from streamchat.models.enums import MessageRole


class ChatRequest(BaseModel):
    """Request model for the chat endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[dict[str, Any]] = Field(
        default_factory=list, description="New turns as {role, content} pairs"
    )
    stream: bool = Field(False, description="Stream the reply as Server-Sent Events")
    session_id: Optional[int] = Field(
        None, alias="sessionId", description="Existing session ID (continue conversation)"
    )
    model: Optional[str] = Field(None, description="Model ID override")


class RegenerateRequest(BaseModel):
    """Request model for the regenerate endpoint."""

    stream: bool = Field(False, description="Stream the reply as Server-Sent Events")
    model: Optional[str] = Field(None, description="Model ID override")


class ChatReply(BaseModel):
    """Assistant reply returned in non-streaming mode."""

    role: Literal["assistant"] = MessageRole.ASSISTANT.value
    content: str = ""


class ChatResponse(BaseModel):
    """Response model for non-streaming chat and regeneration."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: int = Field(..., alias="sessionId")
    reply: ChatReply
    message_id: Optional[int] = Field(None, alias="messageId")


# ===========================================
# Model output
# ===========================================


def _delta_field(delta: Any, *names: str) -> Optional[str]:
    for name in names:
        value = delta.get(name) if isinstance(delta, dict) else getattr(delta, name, None)
        if isinstance(value, str) and value:
            return value
    return None


class Fragment(BaseModel):
    """One normalized increment of model output."""

    text: Optional[str] = None
    reasoning: Optional[str] = None

    @classmethod
    def from_delta(cls, delta: Any) -> "Fragment":
        """Normalize a provider delta (object or dict) into a fragment."""
        if delta is None:
            return cls()
        return cls(
            text=_delta_field(delta, "content"),
            reasoning=_delta_field(delta, "reasoning_content", "reasoning"),
        )

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.reasoning


class Completion(BaseModel):
    """Single-shot model result."""

    content: str = ""
    reasoning: Optional[str] = None


# ===========================================
# Stream events
# ===========================================


class DeltaEvent(BaseModel):
    """Coalesced main-text increment."""

    type: Literal["delta"] = "delta"
    text: str


class ThinkingEvent(BaseModel):
    """Reasoning increment, forwarded as received."""

    type: Literal["thinking"] = "thinking"
    thinking: str


class DoneEvent(BaseModel):
    """Terminal event, written once per generation."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["done"] = "done"
    session_id: int = Field(..., alias="sessionId")


StreamEvent = Annotated[
    Union[DeltaEvent, ThinkingEvent, DoneEvent],
    Field(discriminator="type"),
]


def encode_sse(event: Union[DeltaEvent, ThinkingEvent, DoneEvent]) -> str:
    """Encode an event as one ``data: <JSON>`` SSE frame."""
    payload = event.model_dump(by_alias=True)
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
