"""Streaming LLM service powered by LiteLLM.

Supports any provider LiteLLM supports via model name prefix:
    - cerebras/llama3.1-8b
    - openai/gpt-4o
    - anthropic/claude-sonnet-4-20250514
    - dashscope/qwen-max
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import AsyncIterator

import litellm

from config.llm_config import LLMConfig
from config.settings import get_settings
from services.concurrency import llm_slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextDelta:
    """One streamed fragment; ``finish_reason`` is set on the final chunk."""

    text: str
    finish_reason: str | None = None


class LLMService:
    """Thin wrapper around ``litellm.acompletion(stream=True)``.

    Accepts an optional :class:`LLMConfig` that is merged on top of the
    global defaults from Settings.

    Priority chain (low → high):
        .env global defaults  →  service-level LLMConfig  →  per-call overrides
    """

    def __init__(self, config: LLMConfig | None = None):
        settings = get_settings()
        self._config = settings.get_default_llm_config()
        self._api_key = settings.provider_api_key()

        if config:
            self._config = self._config.merge(config)

    @property
    def model(self) -> str | None:
        return self._config.model

    async def stream(self, messages: list[dict], **overrides) -> AsyncIterator[TextDelta]:
        """Stream a chat completion as text deltas.

        Holds one LLM concurrency slot for the lifetime of the stream and
        closes the upstream response when the consumer stops early.

        Args:
            messages: Conversation in OpenAI message format.
            **overrides: Per-call parameter overrides (e.g. ``temperature=0.2``).

        Yields:
            TextDelta for every chunk carrying text or a finish reason.
        """
        kwargs: dict = {
            "model": self._config.model,
            "messages": messages,
            "stream": True,
            **self._config.to_litellm_kwargs(),
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        kwargs.update(overrides)

        async with llm_slot():
            response = await litellm.acompletion(**kwargs)
            try:
                async for chunk in response:
                    delta = _parse_chunk(chunk)
                    if delta is not None:
                        yield delta
            finally:
                await _close_stream(response)


def _parse_chunk(chunk) -> TextDelta | None:
    """Extract text and finish reason from a LiteLLM streaming chunk."""
    choices = getattr(chunk, "choices", None) or []
    if not choices:
        return None
    choice = choices[0]
    delta = getattr(choice, "delta", None)
    text = getattr(delta, "content", None) or ""
    finish_reason = getattr(choice, "finish_reason", None)
    if not text and not finish_reason:
        return None
    return TextDelta(text=text, finish_reason=finish_reason)


async def _close_stream(response) -> None:
    close = getattr(response, "aclose", None)
    if close is None:
        return
    try:
        result = close()
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.debug("Closing upstream stream failed", exc_info=True)
