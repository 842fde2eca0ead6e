"""
Test doubles for the model client.
"""

from typing import AsyncIterator, Optional

from streamchat.core.exceptions import UpstreamError
from streamchat.interfaces.llm_provider import ContextMessages, ILLMProvider
from streamchat.models.chat import Completion, Fragment


class ScriptedLLMProvider(ILLMProvider):
    """Replays fixed fragments and records every context it receives."""

    def __init__(
        self,
        fragments: Optional[list[Fragment]] = None,
        completion: Optional[Completion] = None,
        fail_after: Optional[int] = None,
        fail_on_complete: bool = False,
        fail_with: Optional[Exception] = None,
    ):
        self.fragments = fragments if fragments is not None else [Fragment(text="Hello there.")]
        self.completion = completion or Completion(content="Hello there.")
        self.fail_after = fail_after
        self.fail_on_complete = fail_on_complete
        self.fail_with = fail_with
        self.calls: list[ContextMessages] = []

    def get_model_name(self) -> str:
        return "Scripted"

    def get_default_model(self) -> str:
        return "scripted-model"

    async def list_models(self) -> list[dict[str, str]]:
        return [{"id": "scripted-model", "name": "Scripted"}]

    async def complete(self, messages: ContextMessages, model_id: Optional[str] = None) -> Completion:
        self.calls.append([dict(m) for m in messages])
        if self.fail_on_complete:
            raise UpstreamError("upstream unavailable")
        return self.completion

    async def stream(
        self,
        messages: ContextMessages,
        model_id: Optional[str] = None,
    ) -> AsyncIterator[Fragment]:
        self.calls.append([dict(m) for m in messages])
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index >= self.fail_after:
                raise self._stream_error()
            yield fragment
        # fail_after == len(fragments): everything was sent, then the stream broke
        if self.fail_after is not None and self.fail_after >= len(self.fragments):
            raise self._stream_error()

    def _stream_error(self) -> Exception:
        return self.fail_with or UpstreamError("connection reset mid-stream")
