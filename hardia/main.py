import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from hardia.api.middleware import AccessLogMiddleware, SecurityHeadersMiddleware
from hardia.api.router import api_router
from hardia.config import APP_VERSION, Settings, get_settings
from hardia.schemas.chat import ErrorResponse
from hardia.services.chat import ChatSession
from hardia.services.gateway import INTERNAL_ERROR_MESSAGE, ChatGateway, SessionFactory
from hardia.services.rate_limiter import RATE_LIMIT_HEADERS, FixedWindowRateLimiter
from hardia.services.runner import BoundedRunner
from hardia.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    session_factory: SessionFactory | None = None,
) -> FastAPI:
    """Build the HardIA API application.

    Args:
        settings: Configuration. If None, loaded from the environment.
        session_factory: Builds the model session for a chat request.
            Defaults to a Gemini-backed ChatSession.
    """
    settings = settings or get_settings()

    if session_factory is None:
        def session_factory(chat_request, model):
            return ChatSession(chat_request, model, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application startup/shutdown lifecycle."""
        setup_logging(settings.log_level, access_log=settings.log_access)
        logger.info(
            f"HardIA backend starting up: environment={settings.node_env} "
            f"model={settings.gemini_model}"
        )
        yield
        logger.info("HardIA backend shutting down...")

    app = FastAPI(
        title="HardIA",
        description="AI-powered hardware compatibility chat API",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.gateway = ChatGateway(
        model=settings.gemini_model,
        mode=settings.mode,
        limiter=FixedWindowRateLimiter(
            limit=settings.api_limit,
            window_seconds=settings.rate_limit_window_seconds,
        ),
        runner=BoundedRunner(deadline=settings.chat_timeout_seconds),
        session_factory=session_factory,
        max_body_bytes=settings.max_body_bytes,
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Retry-After", *RATE_LIMIT_HEADERS],
    )

    app.include_router(api_router)

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception("Internal server error")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=INTERNAL_ERROR_MESSAGE).model_dump(exclude_none=True),
        )

    # Front-end assets, when shipped next to the backend
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    else:
        logger.debug(f"Static directory not found, skipping mount: {static_dir}")

    return app
