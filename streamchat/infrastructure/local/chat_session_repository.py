"""
SQLite implementation of Chat session repository.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from streamchat.core.exceptions import NotFoundError, PersistenceError
from streamchat.core.logger import logger
from streamchat.infrastructure.local.database import ChatMessageORM, ChatSessionORM, get_session_factory
from streamchat.interfaces.chat_session_repository import IChatSessionRepository
from streamchat.models.chat_session import DEFAULT_SESSION_TITLE, ChatMessage, ChatSession


class SqliteChatSessionRepository(IChatSessionRepository):
    """SQLite implementation of chat session repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    @asynccontextmanager
    async def _db(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a DB session, translating driver failures into PersistenceError."""
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Chat store failed to {operation}: {e}")
            raise PersistenceError(f"Failed to {operation}", details=str(e)) from e

    def _session_orm_to_model(self, orm: ChatSessionORM) -> ChatSession:
        """Convert session ORM object to Pydantic model."""
        return ChatSession(
            id=orm.id,
            user_id=orm.user_id,
            title=orm.title or DEFAULT_SESSION_TITLE,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    def _message_orm_to_model(self, orm: ChatMessageORM) -> ChatMessage:
        """Convert message ORM object to Pydantic model."""
        return ChatMessage(
            id=orm.id,
            session_id=orm.session_id,
            role=orm.role,
            content=orm.content or "",
            reasoning=orm.reasoning,
            liked=bool(orm.liked),
            created_at=orm.created_at,
            updated_at=orm.updated_at or orm.created_at,
        )

    @staticmethod
    def _touch(session_orm: ChatSessionORM, now: datetime) -> None:
        # updated_at never moves backwards, even if the wall clock does
        if session_orm.updated_at is None or now > session_orm.updated_at:
            session_orm.updated_at = now

    async def create_session(self, user_id: str, title: Optional[str] = None) -> ChatSession:
        """Create a chat session."""
        async with self._db("create session") as session:
            now = datetime.utcnow()
            orm = ChatSessionORM(
                user_id=user_id,
                title=title or DEFAULT_SESSION_TITLE,
                created_at=now,
                updated_at=now,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._session_orm_to_model(orm)

    async def get_session(self, session_id: int) -> Optional[ChatSession]:
        """Get a chat session by ID."""
        async with self._db("get session") as session:
            orm = await session.get(ChatSessionORM, session_id)
            return self._session_orm_to_model(orm) if orm else None

    async def list_sessions(
        self,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ChatSession]:
        """List chat sessions for a user."""
        async with self._db("list sessions") as session:
            query = (
                select(ChatSessionORM)
                .where(ChatSessionORM.user_id == user_id)
                .order_by(ChatSessionORM.updated_at.desc(), ChatSessionORM.id.desc())
                .limit(limit)
                .offset(offset)
            )
            result = await session.execute(query)
            return [self._session_orm_to_model(orm) for orm in result.scalars().all()]

    async def delete_session(self, session_id: int) -> bool:
        """Delete a session and its messages in one transaction."""
        async with self._db("delete session") as session:
            orm = await session.get(ChatSessionORM, session_id)
            if not orm:
                return False
            await session.execute(
                delete(ChatMessageORM).where(ChatMessageORM.session_id == session_id)
            )
            await session.delete(orm)
            await session.commit()
            return True

    async def insert_message(
        self,
        session_id: int,
        role: str,
        content: str,
        reasoning: Optional[str] = None,
    ) -> ChatMessage:
        """Add a message to a session."""
        async with self._db("insert message") as session:
            session_orm = await session.get(ChatSessionORM, session_id)
            if not session_orm:
                raise NotFoundError(f"Chat session {session_id} not found")

            now = datetime.utcnow()
            message_orm = ChatMessageORM(
                session_id=session_id,
                role=role,
                content=content or "",
                reasoning=reasoning or None,
                liked=False,
                created_at=now,
                updated_at=now,
            )
            session.add(message_orm)
            self._touch(session_orm, now)

            await session.commit()
            await session.refresh(message_orm)
            return self._message_orm_to_model(message_orm)

    async def update_message(
        self,
        message_id: int,
        content: str,
        reasoning: Optional[str] = None,
    ) -> Optional[ChatMessage]:
        """Replace message content in place."""
        async with self._db("update message") as session:
            orm = await session.get(ChatMessageORM, message_id)
            if not orm:
                return None

            now = datetime.utcnow()
            orm.content = content or ""
            orm.reasoning = reasoning or None
            orm.updated_at = now
            session_orm = await session.get(ChatSessionORM, orm.session_id)
            if session_orm:
                self._touch(session_orm, now)

            await session.commit()
            await session.refresh(orm)
            return self._message_orm_to_model(orm)

    async def get_message(self, message_id: int) -> Optional[ChatMessage]:
        """Get a message by ID."""
        async with self._db("get message") as session:
            orm = await session.get(ChatMessageORM, message_id)
            return self._message_orm_to_model(orm) if orm else None

    async def list_messages(
        self,
        session_id: int,
        before_message_id: Optional[int] = None,
    ) -> list[ChatMessage]:
        """List messages for a session."""
        async with self._db("list messages") as session:
            query = select(ChatMessageORM).where(ChatMessageORM.session_id == session_id)
            if before_message_id is not None:
                query = query.where(ChatMessageORM.id < before_message_id)
            query = query.order_by(ChatMessageORM.id.asc())
            result = await session.execute(query)
            return [self._message_orm_to_model(orm) for orm in result.scalars().all()]

    async def set_message_liked(self, message_id: int, liked: bool) -> Optional[ChatMessage]:
        """Set the liked flag of a message."""
        async with self._db("update like") as session:
            orm = await session.get(ChatMessageORM, message_id)
            if not orm:
                return None

            orm.liked = liked
            session_orm = await session.get(ChatSessionORM, orm.session_id)
            if session_orm:
                self._touch(session_orm, datetime.utcnow())

            await session.commit()
            await session.refresh(orm)
            return self._message_orm_to_model(orm)
