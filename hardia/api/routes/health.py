"""Health check endpoint reporting static configuration."""
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from hardia.config import APP_VERSION, Settings
from hardia.schemas.health import HealthLimits, HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Report service version, environment and configured limits."""
    settings: Settings = request.app.state.settings

    return HealthResponse(
        timestamp=datetime.now(timezone.utc),
        version=APP_VERSION,
        environment=settings.node_env,
        model=settings.gemini_model,
        limits=HealthLimits(
            requests_per_hour=settings.api_limit,
            max_tokens=settings.max_tokens,
            timeout_seconds=settings.chat_timeout_seconds,
        ),
    )
