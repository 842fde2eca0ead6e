"""
History Assembler.

Builds the ordered ``{role, content}`` context for a session from the store.
"""

from typing import Optional

from streamchat.interfaces.chat_session_repository import IChatSessionRepository


class HistoryAssembler:
    """Reads session history for the model context window."""

    def __init__(self, chat_repo: IChatSessionRepository):
        self._chat_repo = chat_repo

    async def assemble(
        self,
        session_id: int,
        before_message_id: Optional[int] = None,
    ) -> list[dict[str, str]]:
        """
        Return prior turns in creation order.

        Args:
            session_id: Session to read
            before_message_id: Exclusive bound; the bound message and anything
                created after it are left out

        Raises:
            PersistenceError: store unreachable
        """
        messages = await self._chat_repo.list_messages(
            session_id,
            before_message_id=before_message_id,
        )
        return [message.as_context() for message in messages]
