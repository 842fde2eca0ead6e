"""
Unit tests for the history assembler.
"""

from unittest.mock import AsyncMock

import pytest

from streamchat.core.exceptions import PersistenceError
from streamchat.services.history_assembler import HistoryAssembler


@pytest.mark.asyncio
async def test_assemble_returns_role_content_pairs_in_order(chat_repo, test_user_id):
    session = await chat_repo.create_session(test_user_id)
    await chat_repo.insert_message(session.id, "system", "be brief")
    await chat_repo.insert_message(session.id, "user", "hi")
    await chat_repo.insert_message(session.id, "assistant", "hello", reasoning="greeting")

    history = await HistoryAssembler(chat_repo).assemble(session.id)

    assert history == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ]


@pytest.mark.asyncio
async def test_assemble_respects_bound(chat_repo, test_user_id):
    session = await chat_repo.create_session(test_user_id)
    await chat_repo.insert_message(session.id, "user", "A")
    bound = await chat_repo.insert_message(session.id, "assistant", "B")
    await chat_repo.insert_message(session.id, "user", "C")

    history = await HistoryAssembler(chat_repo).assemble(session.id, before_message_id=bound.id)

    assert history == [{"role": "user", "content": "A"}]


@pytest.mark.asyncio
async def test_assemble_empty_session(chat_repo, test_user_id):
    session = await chat_repo.create_session(test_user_id)
    assert await HistoryAssembler(chat_repo).assemble(session.id) == []


@pytest.mark.asyncio
async def test_store_failure_propagates():
    repo = AsyncMock()
    repo.list_messages.side_effect = PersistenceError("Failed to list messages")

    with pytest.raises(PersistenceError):
        await HistoryAssembler(repo).assemble(1)
