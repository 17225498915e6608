"""Client-side generation session — accumulates relay frames into a code buffer.

One ``GenerationSession`` is owned per editor/user session; there is no
module-level "current generation" state.  Each ``begin()`` starts a fresh
accumulation and bumps ``generation_id``, so frames belonging to an
abandoned generation can be told apart and ignored.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path

from models.generation import DeltaEvent, GenerationRequest, Stage
from services.relay import decode_frame

logger = logging.getLogger(__name__)

DOWNLOAD_FILENAME = "generated-component.tsx"


class SessionState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


class GenerationSession:
    """Working buffer, chat thread and lifecycle of one user's generations.

    - ``code`` events append to the live buffer.
    - ``complete`` replaces the buffer with the normalized ``fullCode``.
    - ``error`` keeps the partial buffer and records the message in ``error``.
    """

    def __init__(self) -> None:
        self.messages: list[dict[str, str]] = []
        self.generation_id = 0
        self._clear_generation()
        self.state = SessionState.IDLE

    def _clear_generation(self) -> None:
        self._buffer = ""
        self.final_code: str | None = None
        self.error: str | None = None
        self.status = ""
        self.finished = False
        self._terminal_seen = False
        self._cancel = asyncio.Event()

    # ── Views ────────────────────────────────────────────────

    @property
    def code(self) -> str:
        """Live buffer while generating; the normalized code once complete."""
        return self._buffer

    @property
    def is_generating(self) -> bool:
        return self.state is SessionState.GENERATING

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    @property
    def cancel_event(self) -> asyncio.Event:
        """Flag shared with whoever drives the stream for this generation."""
        return self._cancel

    @property
    def terminal_seen(self) -> bool:
        return self._terminal_seen

    # ── Lifecycle ────────────────────────────────────────────

    def begin(self, prompt: str, *, follow_up: bool | None = None) -> GenerationRequest:
        """Start a new generation and build its request.

        Args:
            prompt: The user's instruction.
            follow_up: Send the current code as ``priorCode``.  ``None``
                means "follow up whenever there is code to edit".

        Returns:
            The request to submit.  Any in-flight generation is cancelled.
        """
        if self.is_generating:
            self.cancel()

        if follow_up is None:
            follow_up = bool(self._buffer)
        prior_code = self._buffer if follow_up and self._buffer else None

        self.generation_id += 1
        self._clear_generation()
        self.state = SessionState.GENERATING
        self.messages.append({"role": "user", "content": prompt})
        return GenerationRequest(prompt=prompt, prior_code=prior_code)

    def cancel(self) -> None:
        """Request cancellation; the partial buffer is kept."""
        self._cancel.set()
        if self.is_generating:
            self.state = SessionState.CANCELLED

    def reset(self) -> None:
        """Drop the thread, buffers and error; cancel anything in flight."""
        self.cancel()
        self.generation_id += 1
        self.messages = []
        self._clear_generation()
        self.state = SessionState.IDLE

    # ── Frame handling ───────────────────────────────────────

    def apply(self, event: DeltaEvent) -> None:
        """Apply one event; events after a terminal event are ignored.

        After ``cancel()`` further code deltas are dropped, but a terminal
        event is still recorded.
        """
        if self._terminal_seen:
            logger.debug("Ignoring %s event after terminal event", event.stage.value)
            return

        if event.stage is Stage.STATUS:
            self.status = event.content
        elif event.stage is Stage.CODE:
            if self.state is not SessionState.CANCELLED:
                self._buffer += event.content
        elif event.stage is Stage.COMPLETE:
            self._terminal_seen = True
            self._buffer = event.full_code or ""
            self.final_code = self._buffer
            self.state = SessionState.COMPLETE
            self.messages.append({"role": "assistant", "content": self._buffer})
        elif event.stage is Stage.ERROR:
            self._terminal_seen = True
            self.error = event.content or "Generation failed"
            if self.state is not SessionState.CANCELLED:
                self.state = SessionState.FAILED

    def save(self, path: str | Path = DOWNLOAD_FILENAME) -> Path:
        """Write the current code to *path* and return it.

        A directory target gets the default download name inside it.
        """
        if not self._buffer:
            raise ValueError("No component code to save")
        target = Path(path)
        if target.is_dir():
            target = target / DOWNLOAD_FILENAME
        target.write_text(self._buffer, encoding="utf-8")
        logger.info("Saved component to %s (%d chars)", target, len(self._buffer))
        return target

    def fail(self, message: str) -> None:
        """Record a transport-level failure as an error event."""
        self.apply(DeltaEvent.error(message))

    def feed_line(self, line: str) -> bool:
        """Apply one wire line.  Returns ``True`` once the end marker is seen."""
        frame = decode_frame(line)
        if frame is None:
            return False
        if isinstance(frame, str):
            self.finished = True
            return True
        self.apply(frame)
        return False
