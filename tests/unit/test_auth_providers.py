"""
Unit tests for authentication providers and the current-user dependency.
"""

import pytest
from jose import jwt

from streamchat.api.deps import get_current_user
from streamchat.core.config import Settings
from streamchat.core.exceptions import AuthenticationError
from streamchat.core.security import JWT_ALGORITHM, create_access_token
from streamchat.infrastructure.auth.local_auth import LocalAuthProvider
from streamchat.infrastructure.local.mock_auth import MockAuthProvider


@pytest.fixture
def jwt_settings():
    return Settings(
        _env_file=None,
        AUTH_PROVIDER="local",
        LOCAL_JWT_SECRET="test-secret",
        LOCAL_JWT_ISSUER="streamchat-test",
    )


class TestLocalAuthProvider:
    """Tests for HS256 JWT validation."""

    @pytest.mark.asyncio
    async def test_round_trip_identity(self, jwt_settings):
        token = create_access_token("user_alice", jwt_settings)

        user = await LocalAuthProvider(jwt_settings).verify_token(token)

        assert user.id == "user_alice"

    @pytest.mark.asyncio
    async def test_openid_claim_is_accepted(self, jwt_settings):
        token = jwt.encode(
            {"openid": "wx_123", "iss": "streamchat-test"},
            "test-secret",
            algorithm=JWT_ALGORITHM,
        )

        user = await LocalAuthProvider(jwt_settings).verify_token(token)

        assert user.id == "wx_123"

    @pytest.mark.asyncio
    async def test_wrong_secret_is_rejected(self, jwt_settings):
        other = jwt_settings.model_copy(update={"LOCAL_JWT_SECRET": "other-secret"})
        token = create_access_token("user_alice", other)

        with pytest.raises(AuthenticationError):
            await LocalAuthProvider(jwt_settings).verify_token(token)

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(self, jwt_settings):
        token = create_access_token("user_alice", jwt_settings, expires_minutes=-5)

        with pytest.raises(AuthenticationError):
            await LocalAuthProvider(jwt_settings).verify_token(token)

    @pytest.mark.asyncio
    async def test_token_without_identity_is_rejected(self, jwt_settings):
        token = jwt.encode({"iss": "streamchat-test"}, "test-secret", algorithm=JWT_ALGORITHM)

        with pytest.raises(AuthenticationError):
            await LocalAuthProvider(jwt_settings).verify_token(token)

    def test_secret_is_required(self):
        with pytest.raises(ValueError):
            LocalAuthProvider(Settings(_env_file=None, LOCAL_JWT_SECRET=""))


class TestMockAuthProvider:
    @pytest.mark.asyncio
    async def test_token_is_identity(self):
        user = await MockAuthProvider().verify_token("user_bob")
        assert user.id == "user_bob"

    @pytest.mark.asyncio
    async def test_blank_token_is_rejected(self):
        with pytest.raises(AuthenticationError):
            await MockAuthProvider().verify_token("  ")


class TestGetCurrentUser:
    """Tests for bearer header parsing."""

    @pytest.mark.asyncio
    async def test_bearer_header(self):
        user = await get_current_user("Bearer user_alice", MockAuthProvider())
        assert user.id == "user_alice"

    @pytest.mark.asyncio
    async def test_missing_header(self):
        with pytest.raises(AuthenticationError):
            await get_current_user(None, MockAuthProvider())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", ["user_alice", "Basic abc", "Bearer a b"])
    async def test_malformed_header(self, header):
        with pytest.raises(AuthenticationError):
            await get_current_user(header, MockAuthProvider())

    @pytest.mark.asyncio
    async def test_disabled_auth_returns_dev_user(self):
        user = await get_current_user(None, MockAuthProvider(enabled=False))
        assert user.id == "dev_user"
