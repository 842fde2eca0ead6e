"""Abstract interfaces for infrastructure abstraction."""

from streamchat.interfaces.auth_provider import IAuthProvider, User
from streamchat.interfaces.chat_session_repository import IChatSessionRepository
from streamchat.interfaces.llm_provider import ILLMProvider

__all__ = [
    "IAuthProvider",
    "IChatSessionRepository",
    "ILLMProvider",
    "User",
]
