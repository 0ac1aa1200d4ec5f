"""
Health check endpoint.

GET /health reports MongoDB and Redis connectivity as ``{ok, status, checks}``.

    healthy    both reachable                              200
    degraded   Redis down or not configured (limiter off)  200
    unhealthy  MongoDB unreachable                         503
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


async def _check_mongo(request: Request) -> str:
    try:
        await request.app.state.db.client.admin.command("ping")
    except Exception as e:
        log.error("health_check_failed", component="mongodb", error=str(e))
        return "error"
    return "ok"


async def _check_redis(request: Request) -> str:
    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()
    except Exception as e:
        log.warning("health_check_failed", component="redis", error=str(e))
        return "error"
    return "ok"


@router.get("/health")
async def health_check(request: Request) -> JSONResponse:
    checks = {
        "mongodb": await _check_mongo(request),
        "redis": await _check_redis(request),
    }

    if checks["mongodb"] != "ok":
        overall = "unhealthy"
    elif checks["redis"] != "ok":
        overall = "degraded"
    else:
        overall = "healthy"

    body = HealthResponse(ok=overall != "unhealthy", status=overall, checks=checks)
    return JSONResponse(
        status_code=503 if overall == "unhealthy" else 200,
        content=body.model_dump(),
    )
