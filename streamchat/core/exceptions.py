"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class StreamChatError(Exception):
    """Base exception for streamchat."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(StreamChatError):
    """Resource not found."""

    pass


class ValidationError(StreamChatError):
    """Malformed or semantically invalid input."""

    pass


class UpstreamError(StreamChatError):
    """Model provider failure, before or during streaming."""

    pass


class AuthenticationError(StreamChatError):
    """Authentication failed."""

    pass


class AuthorizationError(StreamChatError):
    """Authorization failed."""

    pass


class ForbiddenError(AuthorizationError):
    """Caller does not own the resource."""

    pass


class InfrastructureError(StreamChatError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class PersistenceError(InfrastructureError):
    """Message store unreachable or a write failed."""

    pass
