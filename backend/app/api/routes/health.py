import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.gateways.sql import SqlBriefGateway
from app.services.notifications import RedisNotificationSink

logger = structlog.get_logger(__name__)

router = APIRouter()

SERVICE_NAME = "brief-studio"


@router.get("/health")
async def health_check(request: Request):
    """Liveness check. Returns 503 during graceful shutdown."""
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(status_code=503, content={"status": "shutting_down", "service": SERVICE_NAME})
    return {"status": "healthy", "service": SERVICE_NAME}


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness check for the backends this instance was started with.

    An in-memory gateway or a log-only notifier has nothing to probe and is
    left out of the checks.
    """
    checks: dict[str, bool] = {}

    gateway = getattr(request.app.state, "gateway", None)
    if isinstance(gateway, SqlBriefGateway):
        checks["database"] = False
        try:
            async with gateway.session_factory() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = True
        except Exception as e:
            logger.error("database_readiness_failed", error=str(e), error_type=type(e).__name__)

    notifier = getattr(request.app.state, "notifier", None)
    if isinstance(notifier, RedisNotificationSink):
        checks["redis"] = False
        try:
            await notifier.redis.ping()
            checks["redis"] = True
        except Exception as e:
            logger.error("redis_readiness_failed", error=str(e), error_type=type(e).__name__)

    ready = all(checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )
