"""Component generator — prompt → streamed DeltaEvents → normalized component.

Owns one upstream model call per ``generate()`` invocation:

1. Validate the prompt and the provider credentials (no upstream call on failure).
2. Compose messages (follow-up edits embed the prior code verbatim).
3. Stream the completion, suppressing preamble until code starts.
4. Normalize the accumulated text and emit a single ``complete`` event.

Every failure is reported as exactly one terminal ``error`` event.  There
are no retries: a new attempt is a new caller-initiated ``generate()``.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import AsyncIterator

from config.prompts.component import build_messages
from config.settings import Settings, get_settings
from errors.exceptions import (
    ConfigurationError,
    ExportMissingError,
    GenerationCancelled,
    GenerationError,
    UpstreamError,
    ValidationError,
)
from models.errors import classify_upstream_error, format_error
from models.generation import DeltaEvent, GenerationRequest
from services.llm_service import LLMService
from services.normalizer import CODE_START_TOKENS, normalize

logger = logging.getLogger(__name__)

STATUS_GENERATING = "Generating your component..."
STATUS_EXPORT_MISSING = "Generated component has no default export"

_TOKEN_RE = re.compile(rf"\b({'|'.join(CODE_START_TOKENS)})\b")
# Suppressed characters carried into the next window so a token split
# across two deltas ("imp" + "ort") is still detected.
_CARRY_CHARS = max(len(t) for t in CODE_START_TOKENS) - 1


class AccumulatedText:
    """Append-only text buffer for one generation."""

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._length = 0

    def append(self, text: str) -> None:
        self._parts.append(text)
        self._length += len(text)

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def __len__(self) -> int:
        return self._length


class CodeStartDetector:
    """Lazy two-state filter: suppress preamble, then pass everything through.

    Flips once, on the first whole-word ``import``/``function``/``const``/
    ``export``.  The triggering delta is forwarded whole, prefixed by the
    suppressed head of a token split across deltas.  False triggers (e.g.
    "const" in prose) are accepted; code is never suppressed once started.
    """

    def __init__(self) -> None:
        self.started = False
        self._carry = ""

    def feed(self, delta: str) -> str | None:
        """Return the text to forward for *delta*, or ``None`` to suppress it."""
        if self.started:
            return delta

        window = self._carry + delta
        # A match lying wholly inside the carry was already rejected, and its
        # leading boundary may be an artifact of truncating the carry.
        match = next(
            (m for m in _TOKEN_RE.finditer(window) if m.end() > len(self._carry)),
            None,
        )
        if match is None:
            self._carry = window[-_CARRY_CHARS:]
            return None

        self.started = True
        head = min(match.start(), len(self._carry))
        self._carry = ""
        return window[head:]


class ComponentGenerator:
    """Drive one streamed component generation per ``generate()`` call."""

    def __init__(self, llm: LLMService | None = None, settings: Settings | None = None) -> None:
        self._llm = llm
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def llm(self) -> LLMService:
        if self._llm is None:
            self._llm = LLMService()
        return self._llm

    # ── Validation ───────────────────────────────────────────

    def _validate_prompt(self, request: GenerationRequest) -> str:
        prompt = (request.prompt or "").strip()
        if not prompt:
            raise ValidationError("Prompt is required")
        limit = self.settings.max_prompt_chars
        if len(prompt) > limit:
            raise ValidationError(f"Prompt is too long ({len(prompt)} characters, max {limit})")
        return prompt

    def _check_configuration(self) -> None:
        settings = self.settings
        if not settings.provider_api_key():
            raise ConfigurationError(settings.provider_key_name())

    # ── Generation ───────────────────────────────────────────

    async def generate(
        self,
        request: GenerationRequest,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[DeltaEvent]:
        """Stream DeltaEvents for *request*.

        Args:
            request: Prompt plus optional prior code for a follow-up edit.
            cancel: Cooperative cancellation flag, checked before every
                upstream delta.  Setting it stops upstream consumption and
                yields a terminal ``error`` event.

        Yields:
            ``status`` / ``code`` events, then exactly one ``complete`` or
            ``error`` event.
        """
        cancel = cancel or asyncio.Event()

        try:
            prompt = self._validate_prompt(request)
            self._check_configuration()
        except GenerationError as exc:
            logger.info("Generation rejected: %s", format_error(exc.code, exc.message))
            yield DeltaEvent.error(exc.message)
            return

        logger.info(
            "Generating component (prompt_chars=%d, follow_up=%s)",
            len(prompt),
            request.is_follow_up,
        )
        yield DeltaEvent.status(STATUS_GENERATING)

        started = time.perf_counter()
        accumulated = AccumulatedText()
        detector = CodeStartDetector()
        finish_reason: str | None = None
        stream = self.llm.stream(build_messages(prompt, request.prior_code))

        try:
            async for delta in stream:
                if cancel.is_set():
                    raise GenerationCancelled()
                if delta.finish_reason:
                    finish_reason = delta.finish_reason
                if not delta.text:
                    continue
                accumulated.append(delta.text)
                forwarded = detector.feed(delta.text)
                if forwarded:
                    yield DeltaEvent.code(forwarded)
            if cancel.is_set():
                raise GenerationCancelled()
        except GenerationCancelled as exc:
            logger.info("Generation cancelled after %d characters", len(accumulated))
            yield DeltaEvent.error(exc.message)
            return
        except Exception as exc:
            error = UpstreamError(classify_upstream_error(str(exc)))
            logger.warning(
                "Upstream stream failed after %d characters: %s",
                len(accumulated),
                format_error(error.code, str(exc)),
            )
            yield DeltaEvent.error(error.message)
            return
        finally:
            await stream.aclose()

        logger.info(
            "Upstream stream finished (reason=%s, chars=%d, code_started=%s, %.0fms)",
            finish_reason,
            len(accumulated),
            detector.started,
            (time.perf_counter() - started) * 1000,
        )

        try:
            component = normalize(accumulated.text, min_length=self.settings.min_component_chars)
            if not component.has_default_export and self.settings.require_default_export:
                raise ExportMissingError()
        except GenerationError as exc:
            logger.warning("Normalization failed: %s", format_error(exc.code, exc.message))
            yield DeltaEvent.error(exc.message)
            return

        if not component.has_default_export:
            yield DeltaEvent.status(STATUS_EXPORT_MISSING)
        elif component.export_synthesized:
            logger.info("Synthesized default export for %s", component.export_name)

        yield DeltaEvent.complete(component.code)


_generator: ComponentGenerator | None = None


def get_component_generator() -> ComponentGenerator:
    """Module-level singleton, reused across requests."""
    global _generator
    if _generator is None:
        _generator = ComponentGenerator()
    return _generator
