"""
Chat session and message models.

These models persist chat history for session restore and regeneration.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from streamchat.models.enums import MessageRole

DEFAULT_SESSION_TITLE = "New Chat"


class ChatSession(BaseModel):
    """Chat session model."""

    id: int = Field(..., description="Chat session ID")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(DEFAULT_SESSION_TITLE, max_length=200, description="Session title")
    created_at: datetime
    updated_at: datetime


class ChatMessage(BaseModel):
    """Chat message model."""

    id: int = Field(..., description="Message ID (monotonic within the store)")
    session_id: int = Field(..., description="Owning chat session ID")
    role: MessageRole = Field(..., description="Message role")
    content: str = Field("", description="Main text content")
    reasoning: Optional[str] = Field(None, description="Auxiliary reasoning text")
    liked: bool = Field(False, description="Liked by the owner")
    created_at: datetime
    updated_at: datetime

    def as_context(self) -> dict[str, str]:
        """Return the ``{role, content}`` pair sent to the model."""
        return {"role": self.role.value, "content": self.content}
