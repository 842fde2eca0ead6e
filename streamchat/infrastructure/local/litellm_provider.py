"""
LiteLLM provider implementation.

Supports DeepSeek, OpenAI, Bedrock, and other providers via LiteLLM.
Includes support for custom endpoints (api_base) for proxy servers.
"""

import time
from typing import Any, AsyncIterator, Optional

import httpx
import litellm

from streamchat.core.config import Settings, get_settings
from streamchat.core.exceptions import UpstreamError
from streamchat.core.logger import logger
from streamchat.interfaces.llm_provider import ContextMessages, ILLMProvider
from streamchat.models.chat import Completion, Fragment


class LiteLLMProvider(ILLMProvider):
    """LiteLLM provider with custom endpoint support."""

    MODELS_CACHE_TTL = 300  # 5 minutes

    def __init__(
        self,
        model_name: str,
        api_base: Optional[str] = None,
        api_key: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize LiteLLM provider.

        Args:
            model_name: LiteLLM model identifier (e.g., "deepseek/deepseek-reasoner")
            api_base: Custom API endpoint URL (optional, for proxy servers)
                     Note: Do NOT include /v1 suffix - LiteLLM adds it automatically
            api_key: Custom API key (optional, overrides default)
            settings: Settings override (defaults to the cached settings)
        """
        self._model_name = model_name
        self._settings = settings or get_settings()
        self._api_base = api_base or self._settings.LITELLM_API_BASE or None
        self._api_key = api_key or self._settings.LITELLM_API_KEY or None
        self._enable_thinking = self._settings.LITELLM_ENABLE_THINKING
        self._models_cache: list[dict[str, str]] = []
        self._models_fetched_at = 0.0

    def get_model_name(self) -> str:
        """Get human-readable model name."""
        if self._api_base:
            return f"LiteLLM ({self._model_name} @ {self._api_base})"
        return f"LiteLLM ({self._model_name})"

    def get_default_model(self) -> str:
        return self._model_name

    def _build_kwargs(self, messages: ContextMessages, model_id: Optional[str], stream: bool) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model_id or self._model_name,
            "messages": messages,
            "stream": stream,
        }
        if self._api_base:
            kwargs["api_base"] = self._api_base
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._enable_thinking:
            kwargs["extra_body"] = {"thinking": {"type": "enabled"}}
        return kwargs

    async def complete(
        self,
        messages: ContextMessages,
        model_id: Optional[str] = None,
    ) -> Completion:
        """Request a full completion (no streaming)."""
        kwargs = self._build_kwargs(messages, model_id, stream=False)
        logger.debug(f"Requesting completion for {len(messages)} message(s) using {kwargs['model']}")
        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            logger.error(f"LiteLLM completion failed ({kwargs['model']}): {e}")
            raise UpstreamError(f"Model call failed: {e}", details={"model": kwargs["model"]}) from e

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None) or ""
        reasoning = getattr(message, "reasoning_content", None) or None
        return Completion(content=content, reasoning=reasoning)

    async def stream(
        self,
        messages: ContextMessages,
        model_id: Optional[str] = None,
    ) -> AsyncIterator[Fragment]:
        """Yield normalized fragments as they arrive."""
        kwargs = self._build_kwargs(messages, model_id, stream=True)
        logger.info(f"Streaming completion using {kwargs['model']}")
        try:
            response = await litellm.acompletion(**kwargs)
            async for chunk in response:
                choices = getattr(chunk, "choices", None) or []
                if not choices:
                    continue
                fragment = Fragment.from_delta(getattr(choices[0], "delta", None))
                if not fragment.is_empty:
                    yield fragment
        except Exception as e:
            logger.error(f"LiteLLM stream failed ({kwargs['model']}): {e}")
            raise UpstreamError(f"Model stream failed: {e}", details={"model": kwargs["model"]}) from e

    async def list_models(self) -> list[dict[str, str]]:
        """List models from the LiteLLM proxy, falling back to configured ones."""
        proxy_models = await self._fetch_proxy_models()
        if proxy_models:
            return proxy_models
        return [{"id": m, "name": m} for m in self._settings.AVAILABLE_MODELS]

    async def _fetch_proxy_models(self) -> list[dict[str, str]]:
        if not self._api_base:
            return []

        now = time.time()
        if self._models_cache and now - self._models_fetched_at < self.MODELS_CACHE_TTL:
            return self._models_cache

        try:
            headers: dict[str, str] = {}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"

            async with httpx.AsyncClient(timeout=10.0) as client:
                resp = await client.get(f"{self._api_base.rstrip('/')}/models", headers=headers)
                resp.raise_for_status()
                data = resp.json()

            # OpenAI-compatible format: { "data": [{"id": "model-name", ...}, ...] }
            result = [
                {"id": m["id"], "name": m.get("id", "")}
                for m in data.get("data", [])
                if m.get("id")
            ]
            self._models_cache = result
            self._models_fetched_at = now
            return result

        except Exception as e:
            logger.warning(f"Failed to fetch LiteLLM models: {e}")
            return self._models_cache
