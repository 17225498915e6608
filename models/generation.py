"""Generation pipeline models — request, delta events, normalized output."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import field_validator

from models.base import CamelModel


class Stage(str, Enum):
    STATUS = "status"
    CODE = "code"
    ERROR = "error"
    COMPLETE = "complete"


TERMINAL_STAGES = frozenset({Stage.ERROR, Stage.COMPLETE})


class GenerationRequest(CamelModel):
    """POST /api/generate — request body.

    ``prompt`` is only checked for presence here; emptiness and size are
    validated by the generator so they surface as an ``error`` event.
    """

    prompt: str
    prior_code: str | None = None

    @field_validator("prior_code")
    @classmethod
    def _blank_prior_code_is_absent(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value

    @property
    def is_follow_up(self) -> bool:
        return self.prior_code is not None


class DeltaEvent(CamelModel):
    """One progress event of a generation.

    Zero or more ``status``/``code`` events precede exactly one terminal
    event (``complete`` or ``error``).  ``full_code`` is set only on
    ``complete``.
    """

    stage: Stage
    content: str = ""
    full_code: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    def to_wire(self) -> dict[str, Any]:
        """Wire payload: ``stage``, ``content`` and, on complete only, ``fullCode``."""
        payload: dict[str, Any] = {"stage": self.stage.value, "content": self.content}
        if self.stage is Stage.COMPLETE:
            payload["fullCode"] = self.full_code or ""
        return payload

    # ── Factories ────────────────────────────────────────────

    @classmethod
    def status(cls, message: str) -> DeltaEvent:
        return cls(stage=Stage.STATUS, content=message)

    @classmethod
    def code(cls, text: str) -> DeltaEvent:
        return cls(stage=Stage.CODE, content=text)

    @classmethod
    def error(cls, message: str) -> DeltaEvent:
        return cls(stage=Stage.ERROR, content=message)

    @classmethod
    def complete(cls, full_code: str) -> DeltaEvent:
        return cls(stage=Stage.COMPLETE, content="", full_code=full_code)


@dataclass(frozen=True)
class NormalizedComponent:
    """Final, loadable component text produced once per generation."""

    code: str
    export_name: str | None = None
    has_default_export: bool = False
    export_synthesized: bool = False
