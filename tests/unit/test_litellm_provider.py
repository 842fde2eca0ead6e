"""
Unit tests for LiteLLMProvider.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from streamchat.core.config import Settings
from streamchat.core.exceptions import UpstreamError
from streamchat.infrastructure.local.litellm_provider import LiteLLMProvider
from streamchat.models.chat import Fragment

ACOMPLETION = "streamchat.infrastructure.local.litellm_provider.litellm.acompletion"


def _settings(**overrides) -> Settings:
    values = {"LITELLM_API_BASE": "", "LITELLM_API_KEY": "", "LITELLM_ENABLE_THINKING": True}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _chunk(content=None, reasoning_content=None):
    delta = SimpleNamespace(content=content, reasoning_content=reasoning_content)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


class _ChunkStream:
    def __init__(self, chunks, error=None):
        self._chunks = chunks
        self._error = error

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self._chunks:
            yield chunk
        if self._error:
            raise self._error


@pytest.mark.asyncio
async def test_stream_normalizes_deltas():
    provider = LiteLLMProvider("deepseek/deepseek-reasoner", settings=_settings())
    chunks = [
        _chunk(reasoning_content="think"),
        _chunk(content="Hel"),
        SimpleNamespace(choices=[]),
        _chunk(),
        _chunk(content="lo", reasoning_content="more"),
    ]

    with patch(ACOMPLETION, new=AsyncMock(return_value=_ChunkStream(chunks))) as mock_call:
        fragments = [f async for f in provider.stream([{"role": "user", "content": "hi"}])]

    assert fragments == [
        Fragment(reasoning="think"),
        Fragment(text="Hel"),
        Fragment(text="lo", reasoning="more"),
    ]
    kwargs = mock_call.call_args.kwargs
    assert kwargs["stream"] is True
    assert kwargs["model"] == "deepseek/deepseek-reasoner"
    assert kwargs["extra_body"] == {"thinking": {"type": "enabled"}}


@pytest.mark.asyncio
async def test_stream_uses_model_override_and_custom_endpoint():
    provider = LiteLLMProvider(
        "deepseek/deepseek-chat",
        api_base="http://proxy:4000",
        api_key="sk-test",
        settings=_settings(LITELLM_ENABLE_THINKING=False),
    )

    with patch(ACOMPLETION, new=AsyncMock(return_value=_ChunkStream([]))) as mock_call:
        assert [f async for f in provider.stream([], model_id="openai/gpt-4o")] == []

    kwargs = mock_call.call_args.kwargs
    assert kwargs["model"] == "openai/gpt-4o"
    assert kwargs["api_base"] == "http://proxy:4000"
    assert kwargs["api_key"] == "sk-test"
    assert "extra_body" not in kwargs


@pytest.mark.asyncio
async def test_stream_open_failure_is_upstream_error():
    provider = LiteLLMProvider("deepseek/deepseek-chat", settings=_settings())

    with patch(ACOMPLETION, new=AsyncMock(side_effect=RuntimeError("401 invalid key"))):
        with pytest.raises(UpstreamError):
            async for _ in provider.stream([{"role": "user", "content": "hi"}]):
                pass


@pytest.mark.asyncio
async def test_stream_midstream_failure_is_upstream_error():
    provider = LiteLLMProvider("deepseek/deepseek-chat", settings=_settings())
    stream = _ChunkStream([_chunk(content="partial")], error=ConnectionError("reset"))
    received = []

    with patch(ACOMPLETION, new=AsyncMock(return_value=stream)):
        with pytest.raises(UpstreamError):
            async for fragment in provider.stream([{"role": "user", "content": "hi"}]):
                received.append(fragment)

    assert received == [Fragment(text="partial")]


@pytest.mark.asyncio
async def test_complete_reads_content_and_reasoning():
    provider = LiteLLMProvider("deepseek/deepseek-reasoner", settings=_settings())
    message = SimpleNamespace(content="Answer", reasoning_content="Because")
    response = SimpleNamespace(choices=[SimpleNamespace(message=message)])

    with patch(ACOMPLETION, new=AsyncMock(return_value=response)) as mock_call:
        completion = await provider.complete([{"role": "user", "content": "q"}])

    assert completion.content == "Answer"
    assert completion.reasoning == "Because"
    assert mock_call.call_args.kwargs["stream"] is False


@pytest.mark.asyncio
async def test_complete_failure_is_upstream_error():
    provider = LiteLLMProvider("deepseek/deepseek-chat", settings=_settings())

    with patch(ACOMPLETION, new=AsyncMock(side_effect=TimeoutError("timed out"))):
        with pytest.raises(UpstreamError):
            await provider.complete([{"role": "user", "content": "q"}])


@pytest.mark.asyncio
async def test_generate_dispatches_on_stream_flag():
    provider = LiteLLMProvider("deepseek/deepseek-chat", settings=_settings())
    message = SimpleNamespace(content="full", reasoning_content=None)
    response = SimpleNamespace(choices=[SimpleNamespace(message=message)])

    with patch(ACOMPLETION, new=AsyncMock(return_value=response)):
        completion = await provider.generate([{"role": "user", "content": "q"}])
    assert completion.content == "full"

    with patch(ACOMPLETION, new=AsyncMock(return_value=_ChunkStream([_chunk(content="x")]))):
        fragments = await provider.generate([{"role": "user", "content": "q"}], stream=True)
        assert [f async for f in fragments] == [Fragment(text="x")]


@pytest.mark.asyncio
async def test_list_models_falls_back_to_configured():
    provider = LiteLLMProvider(
        "deepseek/deepseek-chat",
        settings=_settings(AVAILABLE_MODELS=["a/one", "b/two"]),
    )

    models = await provider.list_models()

    assert models == [{"id": "a/one", "name": "a/one"}, {"id": "b/two", "name": "b/two"}]
    assert provider.get_default_model() == "deepseek/deepseek-chat"
