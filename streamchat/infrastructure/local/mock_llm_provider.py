"""
Mock LLM provider for local development and UI testing.

Streams a canned reply in small uneven slices with short pauses, so the
client sees realistic fragment timing without any network access.
"""

import asyncio
import random
from typing import AsyncIterator, Optional

from streamchat.interfaces.llm_provider import ContextMessages, ILLMProvider
from streamchat.models.chat import Completion, Fragment

MOCK_MODEL_ID = "mock-chat"


class MockLLMProvider(ILLMProvider):
    """Mock provider that replies without calling a model."""

    def __init__(
        self,
        reply: Optional[str] = None,
        reasoning: Optional[str] = None,
        delay_range: tuple[float, float] = (0.04, 0.12),
        slice_range: tuple[int, int] = (3, 8),
        seed: Optional[int] = None,
    ):
        self._reply = reply
        self._reasoning = reasoning
        self._delay_range = delay_range
        self._slice_range = slice_range
        self._random = random.Random(seed)

    def get_model_name(self) -> str:
        return "Mock"

    def get_default_model(self) -> str:
        return MOCK_MODEL_ID

    async def list_models(self) -> list[dict[str, str]]:
        return [{"id": MOCK_MODEL_ID, "name": "Mock (UI testing)"}]

    def _reply_for(self, messages: ContextMessages) -> str:
        if self._reply is not None:
            return self._reply
        last_user = next(
            (m.get("content", "") for m in reversed(messages) if m.get("role") == "user"),
            "",
        )
        return f"This is a mock reply for UI testing. You said: {last_user}"

    def _slices(self, text: str) -> list[str]:
        low, high = self._slice_range
        parts: list[str] = []
        index = 0
        while index < len(text):
            size = self._random.randint(low, high)
            parts.append(text[index:index + size])
            index += size
        return parts

    async def _pause(self) -> None:
        low, high = self._delay_range
        if high > 0:
            await asyncio.sleep(self._random.uniform(low, high))

    async def complete(
        self,
        messages: ContextMessages,
        model_id: Optional[str] = None,
    ) -> Completion:
        return Completion(content=self._reply_for(messages), reasoning=self._reasoning)

    async def stream(
        self,
        messages: ContextMessages,
        model_id: Optional[str] = None,
    ) -> AsyncIterator[Fragment]:
        if self._reasoning:
            for part in self._slices(self._reasoning):
                yield Fragment(reasoning=part)
                await self._pause()
        for part in self._slices(self._reply_for(messages)):
            yield Fragment(text=part)
            await self._pause()
