"""
Chat session repository interface.

Defines the contract for chat history persistence. Implementations must raise
``PersistenceError`` when the store fails and return ``None`` (or an empty
list) when a record is simply absent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from streamchat.models.chat_session import ChatMessage, ChatSession


class IChatSessionRepository(ABC):
    """Abstract interface for chat session persistence."""

    @abstractmethod
    async def create_session(self, user_id: str, title: Optional[str] = None) -> ChatSession:
        """
        Create a chat session.

        Args:
            user_id: Owner user ID
            title: Optional session title

        Returns:
            Created ChatSession
        """
        pass

    @abstractmethod
    async def get_session(self, session_id: int) -> Optional[ChatSession]:
        """
        Get a chat session by ID.

        Returns:
            ChatSession or None if not found
        """
        pass

    @abstractmethod
    async def list_sessions(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ChatSession]:
        """
        List chat sessions for a user, most recently updated first.

        Args:
            user_id: Owner user ID
            limit: Max sessions
            offset: Pagination offset

        Returns:
            List of chat sessions
        """
        pass

    @abstractmethod
    async def delete_session(self, session_id: int) -> bool:
        """
        Delete a session together with all of its messages.

        Returns:
            True if the session existed
        """
        pass

    @abstractmethod
    async def insert_message(
        self,
        session_id: int,
        role: str,
        content: str,
        reasoning: Optional[str] = None,
    ) -> ChatMessage:
        """
        Append a message to a session and refresh the session's updated_at.

        Args:
            session_id: Session ID
            role: Message role (user/assistant/system)
            content: Message content
            reasoning: Optional reasoning text

        Returns:
            ChatMessage
        """
        pass

    @abstractmethod
    async def update_message(
        self,
        message_id: int,
        content: str,
        reasoning: Optional[str] = None,
    ) -> Optional[ChatMessage]:
        """
        Replace a message's content and reasoning in place.

        The message keeps its ID and position; only updated_at is refreshed.

        Returns:
            Updated ChatMessage or None if not found
        """
        pass

    @abstractmethod
    async def get_message(self, message_id: int) -> Optional[ChatMessage]:
        """
        Get a message by ID.

        Returns:
            ChatMessage or None if not found
        """
        pass

    @abstractmethod
    async def list_messages(
        self,
        session_id: int,
        before_message_id: Optional[int] = None,
    ) -> list[ChatMessage]:
        """
        List messages for a session in creation order.

        Args:
            session_id: Session ID
            before_message_id: Exclusive bound; only messages created before
                this one are returned

        Returns:
            List of chat messages
        """
        pass

    @abstractmethod
    async def set_message_liked(self, message_id: int, liked: bool) -> Optional[ChatMessage]:
        """
        Set the liked flag of a message.

        Returns:
            Updated ChatMessage or None if not found
        """
        pass
