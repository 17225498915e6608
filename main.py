"""FastAPI entry point for the component generator service."""

import logging
from contextlib import asynccontextmanager

import litellm
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.generate import router as generate_router
from api.health import router as health_router
from config.settings import get_settings
from services.concurrency import ConcurrencyLimitMiddleware
from services.middleware import RequestIdMiddleware

logger = logging.getLogger(__name__)

settings = get_settings()

# ── Global LiteLLM settings ──────────────────────────────────
litellm.request_timeout = settings.llm_request_timeout


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective generation configuration on startup."""
    if settings.provider_api_key():
        logger.info("Component generator ready (model=%s)", settings.component_model)
    else:
        logger.warning(
            "%s is not configured — generation requests will fail until it is set",
            settings.provider_key_name(),
        )
    yield


app = FastAPI(
    title="Component Generator",
    description="Streams React component generation from a hosted LLM",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware stack ───────────────────────────────────────────
# Starlette runs the last-added middleware first: ConcurrencyLimit → RequestId → CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(ConcurrencyLimitMiddleware)

app.include_router(health_router)
app.include_router(generate_router)


if __name__ == "__main__":
    if settings.debug:
        # Development: single worker with reload
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            reload=True,
        )
    else:
        # Production: prefer gunicorn main:app -c deploy/gunicorn.conf.py
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=4,
            timeout_keep_alive=120,
        )
