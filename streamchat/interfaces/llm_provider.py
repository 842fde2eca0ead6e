"""
LLM provider interface.

Defines the contract for streaming and single-shot model access.
Implementations: LiteLLM (DeepSeek, OpenAI, Bedrock, etc.), Mock.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional, Union

from streamchat.models.chat import Completion, Fragment

ContextMessages = list[dict[str, str]]


class ILLMProvider(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    def get_model_name(self) -> str:
        """
        Get the human-readable model name.

        Returns:
            Model name string for logging/display
        """
        pass

    @abstractmethod
    def get_default_model(self) -> str:
        """
        Get the model identifier used when a request does not pick one.
        """
        pass

    @abstractmethod
    async def list_models(self) -> list[dict[str, str]]:
        """
        Get selectable models as ``{"id", "name"}`` entries.
        """
        pass

    @abstractmethod
    async def complete(
        self,
        messages: ContextMessages,
        model_id: Optional[str] = None,
    ) -> Completion:
        """
        Run a single-shot completion.

        Raises:
            UpstreamError: provider call failed
        """
        pass

    @abstractmethod
    def stream(
        self,
        messages: ContextMessages,
        model_id: Optional[str] = None,
    ) -> AsyncIterator[Fragment]:
        """
        Stream normalized fragments lazily.

        Iteration raises UpstreamError if the provider fails, whether on
        connect or mid-stream. No retries are attempted.
        """
        pass

    async def generate(
        self,
        messages: ContextMessages,
        model_id: Optional[str] = None,
        stream: bool = False,
    ) -> Union[Completion, AsyncIterator[Fragment]]:
        """
        Either a single completion or a lazy fragment sequence.
        """
        if stream:
            return self.stream(messages, model_id)
        return await self.complete(messages, model_id)
