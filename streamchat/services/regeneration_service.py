"""
Regeneration Service.

Replaces an earlier assistant reply with a fresh one generated from the
conversation up to the user turn that prompted it. The assistant row is
updated in place, so its ID and position in the session never change.
"""

from __future__ import annotations

from typing import Optional

from streamchat.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from streamchat.core.logger import logger
from streamchat.models.chat import ChatResponse
from streamchat.models.chat_session import ChatMessage
from streamchat.models.enums import MessageRole
from streamchat.services.chat_service import ChatService, ChatTurn


class RegenerationService(ChatService):
    """Truncate-and-replay generation for a single assistant message."""

    async def prepare_regeneration(self, user_id: str, message_id: int) -> ChatTurn:
        """
        Resolve the context for regenerating an assistant message.

        Raises:
            NotFoundError: message does not exist
            ValidationError: message is not an assistant reply, or no user turn precedes it
            ForbiddenError: message belongs to another user's session
        """
        target = await self._chat_repo.get_message(message_id)
        if not target:
            raise NotFoundError(f"Message {message_id} not found")
        if target.role != MessageRole.ASSISTANT:
            raise ValidationError("Only assistant messages can be regenerated", details=target.role.value)

        session = await self._chat_repo.get_session(target.session_id)
        if not session or session.user_id != user_id:
            raise ForbiddenError(f"Message {message_id} belongs to another user")

        history = await self._history.assemble(target.session_id, before_message_id=target.id)

        last_user_index = None
        for index in range(len(history) - 1, -1, -1):
            if history[index]["role"] == MessageRole.USER.value:
                last_user_index = index
                break
        if last_user_index is None:
            raise ValidationError("No user message precedes this reply")

        logger.info(f"Regenerating message {message_id} in session {target.session_id}")
        return ChatTurn(
            session_id=target.session_id,
            context=history[: last_user_index + 1],
            target_message_id=target.id,
        )

    async def _persist_reply(
        self,
        turn: ChatTurn,
        content: str,
        reasoning: Optional[str] = None,
    ) -> ChatMessage:
        updated = await self._chat_repo.update_message(
            turn.target_message_id,
            content,
            reasoning=reasoning,
        )
        if not updated:
            raise NotFoundError(f"Message {turn.target_message_id} was deleted during regeneration")
        return updated

    def _build_response(self, turn: ChatTurn, content: str) -> ChatResponse:
        response = super()._build_response(turn, content)
        response.message_id = turn.target_message_id
        return response

    async def regenerate(
        self,
        user_id: str,
        message_id: int,
        model_id: Optional[str] = None,
    ) -> ChatResponse:
        """Non-streaming regeneration."""
        turn = await self.prepare_regeneration(user_id, message_id)
        return await self.complete_turn(turn, model_id=model_id)
