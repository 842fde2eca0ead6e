"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the correct
infrastructure implementations based on environment configuration.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header

from streamchat.core.config import Settings, get_settings
from streamchat.core.exceptions import AuthenticationError
from streamchat.interfaces.auth_provider import IAuthProvider, User
from streamchat.interfaces.chat_session_repository import IChatSessionRepository
from streamchat.interfaces.llm_provider import ILLMProvider
from streamchat.services.chat_service import ChatService
from streamchat.services.regeneration_service import RegenerationService

# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_chat_session_repository() -> IChatSessionRepository:
    """Get chat session repository instance."""
    from streamchat.infrastructure.local.chat_session_repository import SqliteChatSessionRepository
    return SqliteChatSessionRepository()


# ===========================================
# Provider Dependencies
# ===========================================


@lru_cache()
def get_llm_provider() -> ILLMProvider:
    """
    Get LLM provider instance based on LLM_PROVIDER setting.

    Supports:
    - litellm: LiteLLM (DeepSeek, OpenAI, Bedrock, etc. with optional custom endpoint)
    - mock: canned streaming reply for UI testing
    """
    settings = get_settings()

    if settings.LLM_PROVIDER == "litellm":
        from streamchat.infrastructure.local.litellm_provider import LiteLLMProvider
        return LiteLLMProvider(settings.LITELLM_MODEL, settings=settings)

    elif settings.LLM_PROVIDER == "mock":
        from streamchat.infrastructure.local.mock_llm_provider import MockLLMProvider
        return MockLLMProvider()

    else:
        raise ValueError(f"Unknown LLM_PROVIDER: {settings.LLM_PROVIDER}")


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    settings = get_settings()
    if settings.AUTH_PROVIDER == "local":
        from streamchat.infrastructure.auth.local_auth import LocalAuthProvider

        return LocalAuthProvider(settings)

    from streamchat.infrastructure.local.mock_auth import MockAuthProvider
    return MockAuthProvider(enabled=True)


# ===========================================
# Auth Dependencies
# ===========================================


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Get current authenticated user from the ``Authorization: Bearer`` header.

    Raises:
        AuthenticationError: header missing, malformed, or token rejected
    """
    if not auth_provider.is_enabled():
        # Mock user for development
        return User(id="dev_user", display_name="Developer")

    if not authorization:
        raise AuthenticationError("Authorization header required")

    # Extract token from "Bearer <token>"
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise AuthenticationError("Invalid authorization header format")

    return await auth_provider.verify_token(token)


# ===========================================
# Service Dependencies
# ===========================================


def get_chat_service(
    chat_repo: IChatSessionRepository = Depends(get_chat_session_repository),
    llm_provider: ILLMProvider = Depends(get_llm_provider),
    settings: Settings = Depends(get_settings),
) -> ChatService:
    return ChatService(chat_repo, llm_provider, settings=settings)


def get_regeneration_service(
    chat_repo: IChatSessionRepository = Depends(get_chat_session_repository),
    llm_provider: ILLMProvider = Depends(get_llm_provider),
    settings: Settings = Depends(get_settings),
) -> RegenerationService:
    return RegenerationService(chat_repo, llm_provider, settings=settings)


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

ChatRepo = Annotated[IChatSessionRepository, Depends(get_chat_session_repository)]
LLMProvider = Annotated[ILLMProvider, Depends(get_llm_provider)]
AppSettings = Annotated[Settings, Depends(get_settings)]
CurrentUser = Annotated[User, Depends(get_current_user)]
ChatSvc = Annotated[ChatService, Depends(get_chat_service)]
RegenerationSvc = Annotated[RegenerationService, Depends(get_regeneration_service)]
