"""FastAPI middleware — request ID tracking and access logging (pure ASGI, streaming-safe)."""

from __future__ import annotations

import logging
import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestIdMiddleware:
    """Inject a unique request ID into every HTTP request/response.

    Uses a pure ASGI implementation (no BaseHTTPMiddleware) so SSE responses
    are not buffered.

    If the client sends ``X-Request-ID`` it is reused; otherwise a short
    UUID is generated.  The ID is stored in ``request.state.request_id`` and
    returned in the response headers.  Stream duration is logged when the
    response body finishes.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        request_id = headers.get(b"x-request-id", b"").decode() or uuid.uuid4().hex[:8]

        scope.setdefault("state", {})
        scope["state"]["request_id"] = request_id

        started = time.perf_counter()
        status_code = 0

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                response_headers = list(message.get("headers", []))
                response_headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = response_headers
            elif message["type"] == "http.response.body" and not message.get("more_body", False):
                logger.info(
                    "%s %s → %d [%s] %.0fms",
                    scope.get("method", ""),
                    scope.get("path", ""),
                    status_code,
                    request_id,
                    (time.perf_counter() - started) * 1000,
                )
            await send(message)

        await self.app(scope, receive, send_with_request_id)
