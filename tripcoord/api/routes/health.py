import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "service": "tripcoord"}


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness check - verifies the document store answers."""
    checks = {"store": False}

    redis = getattr(getattr(request.app.state, "store", None), "redis", None)
    if redis is not None:
        try:
            await redis.ping()
            checks["store"] = True
        except RedisError as e:
            logger.error("store_health_check_failed", error=str(e))

    all_healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={"status": "ready" if all_healthy else "degraded", "checks": checks},
    )
