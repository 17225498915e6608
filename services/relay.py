"""Event relay — DeltaEvents → newline-delimited SSE frames.

Each DeltaEvent becomes one self-terminated frame::

    data: {"stage": "code", "content": "..."}\\n\\n

and the stream ends with an explicit marker that is never a DeltaEvent::

    data: [DONE]\\n\\n

so a reader can detect completion even when the transport does not signal
EOF.  Each frame is yielded as a single chunk, so a frame is never split
across transport writes.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from models.generation import DeltaEvent, Stage

logger = logging.getLogger(__name__)

DONE_MARKER = "[DONE]"
_DATA_PREFIX = "data:"

MISSING_TERMINAL_MESSAGE = "Generation ended unexpectedly"


class FrameEncoder:
    """Encode DeltaEvents into SSE frames.

    Every public method returns a ready-to-yield string.
    """

    @staticmethod
    def _sse(payload: dict[str, Any]) -> str:
        return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"

    def frame(self, event: DeltaEvent) -> str:
        return self._sse(event.to_wire())

    def done(self) -> str:
        return f"data: {DONE_MARKER}\n\n"


def decode_frame(line: str) -> DeltaEvent | str | None:
    """Parse one wire line.

    Returns:
        A DeltaEvent for a data frame, :data:`DONE_MARKER` for the end
        marker, or ``None`` for blank lines, comments and other SSE fields.

    Raises:
        ValueError: The data payload is not a valid DeltaEvent.
    """
    line = line.strip()
    if not line.startswith(_DATA_PREFIX):
        return None
    data = line[len(_DATA_PREFIX):].strip()
    if not data:
        return None
    if data == DONE_MARKER:
        return DONE_MARKER
    payload = json.loads(data)
    return DeltaEvent(
        stage=Stage(payload["stage"]),
        content=payload.get("content") or "",
        full_code=payload.get("fullCode"),
    )


async def relay_frames(
    events: AsyncIterator[DeltaEvent],
    *,
    cancel: asyncio.Event,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    encoder: FrameEncoder | None = None,
) -> AsyncIterator[str]:
    """Relay a generator's event stream as SSE frames.

    Args:
        events: The generator's DeltaEvent stream (driven with *cancel*).
        cancel: Shared cancellation flag.  Once set, no further non-terminal
            frames are written; the generator's terminal event and the end
            marker still are.
        is_disconnected: Optional probe checked before each frame.  When it
            reports a disconnect, *cancel* is set so the generator aborts the
            upstream call, and the relay stops.
        encoder: Frame encoder (default :class:`FrameEncoder`).

    Yields:
        One frame per event, then the end marker.
    """
    enc = encoder or FrameEncoder()
    terminated = False

    try:
        async for event in events:
            if is_disconnected is not None and await is_disconnected():
                logger.info("Client disconnected — cancelling generation")
                cancel.set()
                return
            if cancel.is_set() and not event.is_terminal:
                continue

            yield enc.frame(event)
            if event.is_terminal:
                terminated = True
                break

        if not terminated:
            logger.error("Event stream ended without a terminal event")
            terminated = True
            yield enc.frame(DeltaEvent.error(MISSING_TERMINAL_MESSAGE))
        yield enc.done()
    finally:
        if not terminated:
            cancel.set()
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()
