"""Health and readiness check endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_redis
from storage.redis_client import RedisClient

router = APIRouter()


@router.get("/health")
def health():
    """Liveness probe, 200 while the process is up."""
    return {"status": "ok"}


@router.get("/ready")
def ready(redis: RedisClient = Depends(get_redis)):
    """Readiness probe, checks that the time-series store answers."""
    if not redis.ping():
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "redis": "unreachable", "circuit_breaker": redis.circuit_state},
        )
    return {
        "status": "ready",
        "redis": "connected",
        "circuit_breaker": redis.circuit_state,
    }
