"""
Shared fixtures: in-memory chat store, settings and a scripted model.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from streamchat.core.config import Settings
from streamchat.infrastructure.local.chat_session_repository import SqliteChatSessionRepository
from streamchat.infrastructure.local.database import Base
from tests.fakes import ScriptedLLMProvider


@pytest.fixture
async def session_factory():
    """Create in-memory database with all tables."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def chat_repo(session_factory):
    return SqliteChatSessionRepository(session_factory)


@pytest.fixture
def settings():
    # Long wait so time-based flushes never depend on test speed
    return Settings(
        _env_file=None,
        LLM_PROVIDER="mock",
        AUTH_PROVIDER="mock",
        STREAM_MIN_CHARS=60,
        STREAM_MAX_WAIT_MS=60_000,
    )


@pytest.fixture
def test_user_id():
    return "user_alice"


@pytest.fixture
def other_user_id():
    return "user_bob"


@pytest.fixture
def llm_provider():
    return ScriptedLLMProvider()
