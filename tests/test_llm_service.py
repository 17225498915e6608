"""Tests for services.llm_service — LiteLLM streaming wrapper."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from config.llm_config import LLMConfig
from services.llm_service import LLMService, TextDelta


def _chunk(content: str | None, finish_reason: str | None = None):
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=SimpleNamespace(content=content), finish_reason=finish_reason)]
    )


class _FakeStream:
    """Async-iterable stand-in for LiteLLM's streaming response."""

    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._chunks:
            raise StopAsyncIteration
        return self._chunks.pop(0)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def service(settings):
    with patch("services.llm_service.get_settings", return_value=settings):
        yield LLMService()


@pytest.mark.asyncio
async def test_stream_yields_text_and_finish_reason(service):
    fake = _FakeStream([_chunk("import "), _chunk(None), SimpleNamespace(choices=[]), _chunk("React"), _chunk(None, "stop")])
    with patch("services.llm_service.litellm.acompletion", new_callable=AsyncMock, return_value=fake) as mock:
        deltas = [d async for d in service.stream([{"role": "user", "content": "hi"}])]

    assert deltas == [TextDelta("import "), TextDelta("React"), TextDelta("", "stop")]
    assert fake.closed

    kwargs = mock.call_args.kwargs
    assert kwargs["model"] == "cerebras/llama3.1-8b"
    assert kwargs["stream"] is True
    assert kwargs["max_tokens"] == 4096
    assert kwargs["temperature"] == 0.7
    assert kwargs["top_p"] == 0.9
    assert kwargs["api_key"] == "test-key"


@pytest.mark.asyncio
async def test_per_call_overrides_win(service):
    fake = _FakeStream([])
    with patch("services.llm_service.litellm.acompletion", new_callable=AsyncMock, return_value=fake) as mock:
        _ = [d async for d in service.stream([], temperature=0.1)]
    assert mock.call_args.kwargs["temperature"] == 0.1


@pytest.mark.asyncio
async def test_early_stop_closes_upstream(service):
    fake = _FakeStream([_chunk("a"), _chunk("b"), _chunk("c")])
    with patch("services.llm_service.litellm.acompletion", new_callable=AsyncMock, return_value=fake):
        stream = service.stream([])
        assert (await stream.__anext__()).text == "a"
        await stream.aclose()
    assert fake.closed


@pytest.mark.asyncio
async def test_upstream_errors_propagate(service):
    with patch(
        "services.llm_service.litellm.acompletion",
        new_callable=AsyncMock,
        side_effect=RuntimeError("Connection refused"),
    ):
        with pytest.raises(RuntimeError, match="Connection refused"):
            _ = [d async for d in service.stream([])]


def test_config_override_merges_on_settings(settings):
    with patch("services.llm_service.get_settings", return_value=settings):
        svc = LLMService(LLMConfig(model="openai/gpt-4o"))
    assert svc.model == "openai/gpt-4o"
