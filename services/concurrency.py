"""Concurrency controls for upstream LLM streams and the generate endpoint.

Prevents overwhelming provider rate limits under load.  Uses
asyncio.Semaphore to cap the number of *concurrent* upstream streams per
worker process, and a pure ASGI middleware (not BaseHTTPMiddleware, which
breaks SSE streaming) to reject generation requests beyond capacity.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from starlette.types import ASGIApp, Receive, Scope, Send

from config.settings import get_settings

logger = logging.getLogger(__name__)

# ── LLM semaphore ────────────────────────────────────────────

_llm_semaphore: asyncio.Semaphore | None = None


def _get_semaphore() -> asyncio.Semaphore:
    """Lazy-init to ensure semaphore is bound to the running event loop."""
    global _llm_semaphore
    if _llm_semaphore is None:
        limit = get_settings().max_concurrent_llm_calls
        _llm_semaphore = asyncio.Semaphore(limit)
        logger.info("LLM concurrency semaphore initialized (max=%d)", limit)
    return _llm_semaphore


@asynccontextmanager
async def llm_slot() -> AsyncIterator[None]:
    """Hold one upstream LLM slot for the duration of a streamed call.

    Usage::

        async with llm_slot():
            response = await litellm.acompletion(..., stream=True)
            async for chunk in response:
                ...
    """
    sem = _get_semaphore()
    async with sem:
        yield


# ── Generation endpoint concurrency middleware (pure ASGI) ────
# Requests that exceed the limit receive 503 instead of queuing forever.

_HEAVY_PATHS = frozenset({"/api/generate"})
_heavy_semaphore: asyncio.Semaphore | None = None


def _get_heavy_semaphore() -> asyncio.Semaphore:
    global _heavy_semaphore
    if _heavy_semaphore is None:
        limit = get_settings().max_concurrent_generations
        _heavy_semaphore = asyncio.Semaphore(limit)
        logger.info("Generation endpoint semaphore initialized (max=%d)", limit)
    return _heavy_semaphore


class ConcurrencyLimitMiddleware:
    """Pure ASGI middleware — reject generation requests when the worker is at capacity.

    Returns HTTP 503 with Retry-After header.  Lightweight endpoints
    (health) pass through unaffected.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") not in _HEAVY_PATHS:
            await self.app(scope, receive, send)
            return

        sem = _get_heavy_semaphore()

        # Non-blocking check: if full, return 503
        if sem.locked():
            logger.warning("Concurrency limit reached for %s — returning 503", scope["path"])
            body = json.dumps(
                {"detail": "Server busy — too many concurrent generations. Please retry."}
            ).encode()
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"retry-after", b"5"),
                ],
            })
            await send({"type": "http.response.body", "body": body})
            return

        async with sem:
            await self.app(scope, receive, send)
