"""Generate API — streamed component generation over SSE."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from starlette.responses import StreamingResponse

from models.generation import GenerationRequest
from services.generator import ComponentGenerator, get_component_generator
from services.relay import relay_frames

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])

_SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/generate")
async def generate_component(
    req: GenerationRequest,
    request: Request,
    generator: ComponentGenerator = Depends(get_component_generator),
):
    """Generate a UI component and stream progress as SSE frames.

    Frames carry ``{stage, content}`` (``fullCode`` on ``complete``) and the
    stream ends with ``data: [DONE]``.  Empty prompts and missing provider
    credentials are reported as an ``error`` frame, not an HTTP error, so
    clients parse every outcome the same way.  A client disconnect cancels
    the upstream model call.
    """
    logger.info(
        "Generate request %s (follow_up=%s)",
        getattr(request.state, "request_id", "-"),
        req.is_follow_up,
    )

    cancel = asyncio.Event()
    frames = relay_frames(
        generator.generate(req, cancel=cancel),
        cancel=cancel,
        is_disconnected=request.is_disconnected,
    )
    return StreamingResponse(frames, media_type="text/event-stream", headers=_SSE_HEADERS)
