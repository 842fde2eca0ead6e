"""
Application configuration using Pydantic Settings.

Provider and auth switching is controlled by LLM_PROVIDER and AUTH_PROVIDER.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "production"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./streamchat.db"

    # ===========================================
    # LLM Configuration
    # ===========================================
    # LLM Provider: "litellm" | "mock"
    # - litellm: LiteLLM (DeepSeek, OpenAI, Bedrock, etc. with optional custom endpoint)
    # - mock: canned streaming reply for UI testing, no network access
    LLM_PROVIDER: Literal["litellm", "mock"] = "litellm"

    # LiteLLM model identifier used when the request does not pick one
    LITELLM_MODEL: str = "deepseek/deepseek-reasoner"

    # LiteLLM custom endpoint (optional, for proxy servers)
    LITELLM_API_BASE: str = ""

    # LiteLLM custom API key (optional, for custom endpoints)
    LITELLM_API_KEY: str = ""

    # Ask reasoning-capable models to stream their thinking text
    LITELLM_ENABLE_THINKING: bool = True

    # Selectable models when the proxy does not publish a /models list
    AVAILABLE_MODELS: List[str] = Field(
        default=["deepseek/deepseek-reasoner", "deepseek/deepseek-chat"]
    )

    # ===========================================
    # Streaming
    # ===========================================
    # Coalescing thresholds for streamed text
    STREAM_MIN_CHARS: int = 60
    STREAM_MAX_WAIT_MS: int = 180

    # ===========================================
    # Auth (JWT)
    # ===========================================
    AUTH_PROVIDER: Literal["mock", "local"] = "mock"
    LOCAL_JWT_SECRET: str = ""
    LOCAL_JWT_ISSUER: str = "streamchat-local"
    LOCAL_JWT_EXPIRE_MINUTES: int = 60 * 24

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"

    @property
    def stream_max_wait_seconds(self) -> float:
        """Maximum buffering delay for streamed text, in seconds."""
        return self.STREAM_MAX_WAIT_MS / 1000.0


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
