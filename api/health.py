"""Health endpoint."""

from fastapi import APIRouter

from config.settings import get_settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health():
    """Liveness plus whether provider credentials are configured."""
    settings = get_settings()
    return {
        "status": "healthy",
        "model": settings.component_model,
        "configured": bool(settings.provider_api_key()),
    }
