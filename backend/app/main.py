"""Brief Studio backend: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# CRITICAL ORDER: configure_structlog MUST be called before all other app imports
# to avoid the structlog cache pitfall (structlog caches the processor chain on first use).
from app.core.logging import configure_structlog
from app.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from app.api.routes import api_router
from app.core.config import get_settings
from app.core.exceptions import (
    BriefNotFound,
    BriefStudioError,
    IllegalTransition,
    PersistenceError,
    SuggestionUnavailable,
    ValidationError,
)
from app.core.logging import get_correlation_id
from app.db import close_db, close_redis, get_session_factory, init_db, init_redis
from app.gateways.attachments import S3AttachmentStore
from app.gateways.sql import SqlBriefGateway
from app.services.notifications import LogNotificationSink, RedisNotificationSink
from app.services.notifier import user_message
from app.services.wizard_sessions import WizardSessionStore
from app.suggestions.provider_anthropic import AnthropicSuggestionProvider

logger = structlog.get_logger(__name__)


async def _init_notifier(channel: str):
    if not channel:
        return LogNotificationSink()
    try:
        redis = await init_redis()
    except (RedisError, OSError) as e:
        logger.warning("notifications_redis_unavailable", channel=channel, error=str(e))
        return LogNotificationSink()
    logger.info("notifications_redis_initialized", channel=channel)
    return RedisNotificationSink(redis, channel)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events.

    Collaborators already present on app.state (tests, local runs) are kept.
    """
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    if getattr(app.state, "gateway", None) is None:
        await init_db()
        app.state.gateway = SqlBriefGateway(get_session_factory(), attachments=S3AttachmentStore())
        logger.info("db_initialized")

    if getattr(app.state, "provider", None) is None:
        app.state.provider = AnthropicSuggestionProvider()

    if getattr(app.state, "notifier", None) is None:
        app.state.notifier = await _init_notifier(settings.notifications_channel)

    if getattr(app.state, "wizard_sessions", None) is None:
        app.state.wizard_sessions = WizardSessionStore()

    yield

    logger.info("shutdown_begin")
    await app.state.wizard_sessions.close_all()
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


_ERROR_STATUS: list[tuple[type[BriefStudioError], int]] = [
    (ValidationError, 422),
    (BriefNotFound, 404),
    (IllegalTransition, 409),
    (PersistenceError, 503),
    (SuggestionUnavailable, 503),
]


async def brief_error_handler(request: Request, exc: BriefStudioError) -> JSONResponse:
    """Map the core error taxonomy to HTTP responses.

    IllegalTransition details stay in the server log; the client gets a
    generic message.
    """
    status_code = next((code for cls, code in _ERROR_STATUS if isinstance(exc, cls)), 500)
    debug_id = str(uuid.uuid4())

    log = logger.warning if status_code < 500 else logger.error
    log(
        "brief_error",
        status_code=status_code,
        error_type=type(exc).__name__,
        error=str(exc),
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
    )

    content = {"detail": user_message(exc), "error": type(exc).__name__, "debug_id": debug_id}
    if isinstance(exc, ValidationError):
        content["field"] = exc.field
    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Global exception handler for HTTPException with debug_id tracking."""
    debug_id = str(uuid.uuid4())

    logger.error(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        detail=exc.detail,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "debug_id": debug_id},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors with debug_id tracking.

    Logs full exception with traceback, returns generic 500 to client.
    """
    debug_id = str(uuid.uuid4())

    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "debug_id": debug_id},
    )


def create_app(app_lifespan=lifespan) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        app_lifespan: Lifespan handler; tests pass one that seeds app.state with fakes
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Guided project brief authoring and review lifecycle",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=app_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Echoes X-Request-ID when the client sends one, otherwise generates a UUID
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        generator=lambda: str(uuid.uuid4()),
        validator=None,
        transformer=lambda a: a,
    )

    app.exception_handler(BriefStudioError)(brief_error_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
