"""
Request logging middleware.

Every request gets a request ID (echoed back as ``X-Request-ID``) and one
``request_completed`` line with method, path, status and duration. The level
follows the status: error for 5xx, warning for 4xx, info otherwise. The
client address is logged only as a hash.
"""

from __future__ import annotations

import time
import uuid

from fastapi import FastAPI, Request
from structlog.stdlib import BoundLogger

from shared.ip_utils import get_client_ip
from shared.logging import get_logger, hash_ip

REQUEST_ID_HEADER = "X-Request-ID"


def generate_request_id() -> str:
    """Generate a unique request ID for correlation."""
    return f"req_{uuid.uuid4().hex[:12]}"


def log_request_end(log: BoundLogger, status_code: int, duration_ms: int) -> None:
    if status_code >= 500:
        log_fn = log.error
    elif status_code >= 400:
        log_fn = log.warning
    else:
        log_fn = log.info
    log_fn("request_completed", status_code=status_code, duration_ms=duration_ms)


def setup_logging_middleware(app: FastAPI) -> None:
    """Register the access-log middleware on *app*."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = generate_request_id()
        log = get_logger("artisan.request").bind(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            ip_hash=hash_ip(get_client_ip(request)),
            user_agent=request.headers.get("User-Agent", "")[:100],
        )
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            log.error(
                "unhandled_exception",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=int((time.perf_counter() - start) * 1000),
            )
            raise

        log_request_end(log, response.status_code, int((time.perf_counter() - start) * 1000))
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
