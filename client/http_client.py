"""HTTP client for the component generator service.

Wraps ``httpx.AsyncClient`` with:
- streamed POST to ``/api/generate`` and line-by-line frame decoding
- feeding frames into a caller-owned :class:`GenerationSession`
- cooperative cancellation: once the session is cancelled or restarted the
  response is closed, which the server observes as a disconnect and uses to
  abort the upstream model call
"""

from __future__ import annotations

import logging
import time

import httpx

from client.session import GenerationSession
from errors.exceptions import GenerationCancelled

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"
GENERATE_PATH = "/api/generate"


class ComponentClientError(Exception):
    """Raised when the generator service returns a non-200 response."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Generator API {status_code}: {detail}")


class ComponentClient:
    """Async client that streams one generation at a time into a session."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 60.0,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http = http
        self._owns_http = http is None

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout, read=None),
        )
        self._owns_http = True
        logger.info("ComponentClient started — base_url=%s", self._base_url)

    async def close(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
        self._http = None

    async def __aenter__(self) -> ComponentClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # -- generation ----------------------------------------------------------

    async def generate(
        self,
        session: GenerationSession,
        prompt: str,
        *,
        follow_up: bool | None = None,
    ) -> GenerationSession:
        """Run one generation and accumulate its frames into *session*.

        Transport failures are recorded on the session as an error; the
        partial buffer is kept.  Returns the same session for chaining.
        """
        await self.start()
        request = session.begin(prompt, follow_up=follow_up)
        generation_id = session.generation_id
        body = request.model_dump(by_alias=True, exclude_none=True)
        started = time.perf_counter()

        try:
            async with self._http.stream("POST", GENERATE_PATH, json=body) as resp:
                if resp.status_code != 200:
                    await resp.aread()
                    raise ComponentClientError(resp.status_code, resp.text)

                async for line in resp.aiter_lines():
                    if session.generation_id != generation_id:
                        logger.info("Generation %d superseded — closing stream", generation_id)
                        return session
                    if session.cancel_requested:
                        logger.info("Generation %d cancelled — closing stream", generation_id)
                        session.fail(GenerationCancelled().message)
                        return session
                    if session.feed_line(line):
                        break
        except ComponentClientError as exc:
            session.fail(str(exc))
            return session
        except httpx.HTTPError as exc:
            logger.warning("Generator stream failed: %s", exc)
            session.fail(f"Connection to generator failed: {exc}")
            return session
        except (ValueError, KeyError) as exc:
            logger.warning("Malformed frame from generator: %s", exc)
            session.fail(f"Malformed response from generator: {exc}")
            return session

        if not session.terminal_seen:
            if session.cancel_requested:
                session.fail(GenerationCancelled().message)
            else:
                session.fail("Stream ended before the generation completed")

        logger.info(
            "Generation %d finished (state=%s, chars=%d, %.0fms)",
            generation_id,
            session.state.value,
            len(session.code),
            (time.perf_counter() - started) * 1000,
        )
        return session
