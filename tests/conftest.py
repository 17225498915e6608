"""Shared pytest fixtures for the generation pipeline tests.

Provides:
- ``settings``: Settings with a provider key set and no .env loading
- ``unconfigured_settings``: Settings without any provider key
- ``make_generator``: build a ComponentGenerator around a scripted FakeLLM
"""

from __future__ import annotations

from typing import Callable

import pytest

from config.settings import Settings
from services.generator import ComponentGenerator
from tests.fakes import FakeLLM


@pytest.fixture
def settings() -> Settings:
    """Provider key set, .env ignored — isolated per test."""
    return Settings(_env_file=None, cerebras_api_key="test-key", component_api_key="")


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings(
        _env_file=None,
        cerebras_api_key="",
        openai_api_key="",
        anthropic_api_key="",
        dashscope_api_key="",
        component_api_key="",
    )


@pytest.fixture
def make_generator(settings) -> Callable[..., tuple[ComponentGenerator, FakeLLM]]:
    def _make(chunks: list[str], **kwargs) -> tuple[ComponentGenerator, FakeLLM]:
        llm = FakeLLM(chunks, **kwargs)
        return ComponentGenerator(llm=llm, settings=settings), llm

    return _make
