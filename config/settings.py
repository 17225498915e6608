"""Pydantic Settings — typed configuration with .env auto-loading."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from config.llm_config import LLMConfig

# Provider prefix (``cerebras/llama3.1-8b`` → ``cerebras``) → settings field
_PROVIDER_KEY_FIELDS = {
    "cerebras": "cerebras_api_key",
    "openai": "openai_api_key",
    "anthropic": "anthropic_api_key",
    "dashscope": "dashscope_api_key",
}


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False

    # ── LLM ──────────────────────────────────────────────────
    # Fixed configuration: callers cannot override model or sampling.
    component_model: str = "cerebras/llama3.1-8b"
    max_tokens: int = 4096
    temperature: float | None = 0.7
    top_p: float | None = 0.9
    seed: int | None = None
    llm_request_timeout: int = 60  # seconds, applied to litellm globally

    # Provider API keys
    cerebras_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    dashscope_api_key: str = ""
    component_api_key: str = ""  # any provider; overrides the provider-specific key

    # ── Generation pipeline ──────────────────────────────────
    max_prompt_chars: int = 8000
    min_component_chars: int = 50  # shorter output is treated as truncated/refused
    require_default_export: bool = False  # True = export-less output is a hard error

    # ── Concurrency ──────────────────────────────────────────
    max_concurrent_generations: int = 15  # per worker, excess gets 503
    max_concurrent_llm_calls: int = 10

    # ── Helpers ───────────────────────────────────────────────

    @property
    def provider(self) -> str:
        return self.component_model.split("/", 1)[0] if "/" in self.component_model else "openai"

    def provider_key_name(self) -> str:
        """Environment variable name holding the credential for the configured provider."""
        field = _PROVIDER_KEY_FIELDS.get(self.provider, f"{self.provider}_api_key")
        return field.upper()

    def provider_api_key(self) -> str:
        """Credential for the configured provider.

        ``COMPONENT_API_KEY`` wins when set.  Providers without a dedicated
        field read their conventional variable (``GROQ_API_KEY`` ...) from the
        process environment, the same place LiteLLM looks.
        """
        if self.component_api_key:
            return self.component_api_key
        field = _PROVIDER_KEY_FIELDS.get(self.provider)
        if field is None:
            return os.getenv(self.provider_key_name(), "")
        return getattr(self, field)

    def get_default_llm_config(self) -> LLMConfig:
        """Build an :class:`LLMConfig` from global .env defaults."""
        return LLMConfig(
            model=self.component_model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
            seed=self.seed,
        )


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
