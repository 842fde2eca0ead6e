"""
Chat Service.

Orchestrates one chat turn: validates input, resolves the session, persists
the user turn, calls the model and persists the assistant reply. Streaming
turns push buffered events into an ``EventChannel`` and always finish with a
single ``done`` event.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from streamchat.core.config import Settings, get_settings
from streamchat.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    UpstreamError,
    ValidationError,
)
from streamchat.core.logger import logger
from streamchat.interfaces.chat_session_repository import IChatSessionRepository
from streamchat.interfaces.llm_provider import ContextMessages, ILLMProvider
from streamchat.models.chat import ChatReply, ChatResponse, DoneEvent
from streamchat.models.chat_session import ChatMessage, ChatSession
from streamchat.models.enums import MessageRole
from streamchat.services.event_channel import EventChannel
from streamchat.services.history_assembler import HistoryAssembler
from streamchat.services.stream_buffer import StreamBuffer, buffer_fragments

VALID_ROLES = {role.value for role in MessageRole}


@dataclass
class ChatTurn:
    """A validated turn, ready for generation."""

    session_id: int
    context: ContextMessages = field(default_factory=list)
    # Assistant row to overwrite; None means a new row is inserted
    target_message_id: Optional[int] = None

    @property
    def mode(self) -> str:
        return "regenerate" if self.target_message_id is not None else "chat"


class ChatService:
    """Service for streaming and single-shot chat turns."""

    TITLE_MAX_LEN = 50

    def __init__(
        self,
        chat_repo: IChatSessionRepository,
        llm_provider: ILLMProvider,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize Chat Service.

        Args:
            chat_repo: Chat session repository
            llm_provider: Model client
            settings: Settings override (defaults to the cached settings)
        """
        self._chat_repo = chat_repo
        self._llm_provider = llm_provider
        self._settings = settings or get_settings()
        self._history = HistoryAssembler(chat_repo)

    # ===========================================
    # Input
    # ===========================================

    @staticmethod
    def validate_messages(messages: Any) -> list[dict[str, str]]:
        """Check incoming turns and return them as plain ``{role, content}`` dicts."""
        if not isinstance(messages, list) or not messages:
            raise ValidationError("messages must be a non-empty list")

        cleaned: list[dict[str, str]] = []
        for index, message in enumerate(messages):
            if not isinstance(message, Mapping):
                raise ValidationError(f"messages[{index}] must be an object")
            role = message.get("role")
            content = message.get("content")
            if not isinstance(role, str) or role not in VALID_ROLES:
                raise ValidationError(f"messages[{index}].role is invalid", details=role)
            if not isinstance(content, str) or not content:
                raise ValidationError(f"messages[{index}].content must be a non-empty string")
            cleaned.append({"role": role, "content": content})
        return cleaned

    def _derive_session_title(self, text: str | None) -> str | None:
        """Derive a session title from user text."""
        if not text:
            return None
        cleaned = text.strip()
        if not cleaned:
            return None
        max_len = self.TITLE_MAX_LEN
        return cleaned[:max_len] + ("..." if len(cleaned) > max_len else "")

    async def _get_owned_session(self, user_id: str, session_id: int) -> ChatSession:
        session = await self._chat_repo.get_session(session_id)
        if not session:
            raise NotFoundError(f"Chat session {session_id} not found")
        if session.user_id != user_id:
            raise ForbiddenError(f"Chat session {session_id} belongs to another user")
        return session

    async def prepare_chat(
        self,
        user_id: str,
        messages: Any,
        session_id: Optional[int] = None,
    ) -> ChatTurn:
        """
        Validate a chat turn and persist its user messages.

        Returns:
            ChatTurn whose context is the prior history followed by the new messages

        Raises:
            ValidationError: malformed messages (nothing is written)
            NotFoundError / ForbiddenError: supplied session is missing or not owned
            PersistenceError: store failure
        """
        new_messages = self.validate_messages(messages)

        if session_id is not None:
            session = await self._get_owned_session(user_id, session_id)
        else:
            title = self._derive_session_title(new_messages[0]["content"])
            session = await self._chat_repo.create_session(user_id, title=title)
            logger.info(f"Created chat session {session.id} for user {user_id}")

        history = await self._history.assemble(session.id)
        for message in new_messages:
            await self._chat_repo.insert_message(session.id, message["role"], message["content"])

        return ChatTurn(session_id=session.id, context=history + new_messages)

    # ===========================================
    # Generation
    # ===========================================

    async def _persist_reply(
        self,
        turn: ChatTurn,
        content: str,
        reasoning: Optional[str] = None,
    ) -> ChatMessage:
        return await self._chat_repo.insert_message(
            turn.session_id,
            MessageRole.ASSISTANT.value,
            content,
            reasoning=reasoning,
        )

    def _build_response(self, turn: ChatTurn, content: str) -> ChatResponse:
        return ChatResponse(session_id=turn.session_id, reply=ChatReply(content=content))

    async def complete_turn(self, turn: ChatTurn, model_id: Optional[str] = None) -> ChatResponse:
        """
        Run a single-shot completion and persist the reply.

        Raises:
            UpstreamError: model call failed; no assistant reply is written
        """
        try:
            completion = await self._llm_provider.generate(turn.context, model_id)
        except UpstreamError as e:
            logger.error(f"Model call failed (session={turn.session_id}, mode={turn.mode}): {e}")
            raise

        await self._persist_reply(turn, completion.content, completion.reasoning)
        return self._build_response(turn, completion.content)

    async def stream_turn(
        self,
        turn: ChatTurn,
        channel: EventChannel,
        model_id: Optional[str] = None,
    ) -> None:
        """
        Stream a reply into the channel, then persist it and send ``done``.

        Runs to completion even when the client has disconnected; events are
        then dropped by the channel but the reply is still stored.
        """
        buffer = StreamBuffer(
            min_chars=self._settings.STREAM_MIN_CHARS,
            max_wait=self._settings.stream_max_wait_seconds,
        )
        try:
            try:
                fragments = await self._llm_provider.generate(turn.context, model_id, stream=True)
                async for event in buffer_fragments(fragments, buffer):
                    channel.send(event)
            except UpstreamError as e:
                logger.error(
                    f"Model stream failed (session={turn.session_id}, mode={turn.mode}, "
                    f"sent_chars={len(buffer.full_text)}): {e}"
                )

            if buffer.full_text:
                try:
                    await self._persist_reply(turn, buffer.full_text, buffer.full_reasoning or None)
                except (PersistenceError, NotFoundError) as e:
                    logger.error(
                        f"Failed to persist streamed reply (session={turn.session_id}, mode={turn.mode}): {e}"
                    )
            else:
                logger.warning(f"Stream produced no text (session={turn.session_id}, mode={turn.mode})")
        finally:
            # Sent on every exit path; unexpected errors still propagate to the task
            channel.send(DoneEvent(session_id=turn.session_id))
            channel.close()

    async def chat(
        self,
        user_id: str,
        messages: Any,
        session_id: Optional[int] = None,
        model_id: Optional[str] = None,
    ) -> ChatResponse:
        """Non-streaming chat turn."""
        turn = await self.prepare_chat(user_id, messages, session_id=session_id)
        return await self.complete_turn(turn, model_id=model_id)

    # ===========================================
    # Session management
    # ===========================================

    async def list_sessions(self, user_id: str, limit: int = 50, offset: int = 0) -> list[ChatSession]:
        return await self._chat_repo.list_sessions(user_id, limit=limit, offset=offset)

    async def list_session_messages(self, user_id: str, session_id: int) -> list[ChatMessage]:
        await self._get_owned_session(user_id, session_id)
        return await self._chat_repo.list_messages(session_id)

    async def delete_session(self, user_id: str, session_id: int) -> None:
        """Delete a session and all of its messages (owner only)."""
        await self._get_owned_session(user_id, session_id)
        await self._chat_repo.delete_session(session_id)
        logger.info(f"Deleted chat session {session_id} for user {user_id}")

    async def _get_owned_message(self, user_id: str, message_id: int) -> ChatMessage:
        message = await self._chat_repo.get_message(message_id)
        if not message:
            raise NotFoundError(f"Message {message_id} not found")
        session = await self._chat_repo.get_session(message.session_id)
        if not session or session.user_id != user_id:
            raise ForbiddenError(f"Message {message_id} belongs to another user")
        return message

    async def toggle_like(self, user_id: str, message_id: int) -> ChatMessage:
        """Flip the liked flag of a message."""
        message = await self._get_owned_message(user_id, message_id)
        updated = await self._chat_repo.set_message_liked(message_id, not message.liked)
        if not updated:
            raise NotFoundError(f"Message {message_id} not found")
        return updated
