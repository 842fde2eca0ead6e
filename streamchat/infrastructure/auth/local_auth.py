"""
Local JWT authentication provider.
"""

from __future__ import annotations

from jose import JWTError

from streamchat.core.config import Settings
from streamchat.core.exceptions import AuthenticationError
from streamchat.core.security import decode_access_token
from streamchat.interfaces.auth_provider import IAuthProvider, User

# Tokens minted by the legacy login flow carry the identity in "openid"
IDENTITY_CLAIMS = ("sub", "openid")


class LocalAuthProvider(IAuthProvider):
    """Local auth provider with HMAC JWT validation."""

    def __init__(self, settings: Settings):
        if not settings.LOCAL_JWT_SECRET:
            raise ValueError("LOCAL_JWT_SECRET must be set for local auth")
        self._settings = settings

    async def verify_token(self, token: str) -> User:
        try:
            claims = decode_access_token(token, self._settings)
        except JWTError as exc:
            raise AuthenticationError("Invalid or expired token", details=str(exc)) from exc

        for claim in IDENTITY_CLAIMS:
            subject = claims.get(claim)
            if subject:
                return User(id=str(subject))
        raise AuthenticationError("Token carries no identity")

    def is_enabled(self) -> bool:
        return True
