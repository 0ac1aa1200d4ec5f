"""
Per-client fixed-window request limiter.

Counting is done by the ``limits`` library (the engine underneath
flask-limiter) with its fixed-window strategy over Redis storage, so the
increment and the window expiry are a single atomic step on the server.

build_rate_limiter() is called once from the app lifespan and the result is
stored on ``app.state.rate_limiter``. RateLimiter is the FastAPI dependency
that charges a request against it; when no storage is configured
(``app.state.rate_limiter is None``) the dependency is a no-op.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import Request
from limits import RateLimitItemPerSecond
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter

from errors import RateLimitError
from shared.ip_utils import get_client_ip
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)


def build_rate_limiter(storage_uri: Optional[str]) -> Optional[FixedWindowRateLimiter]:
    """Fixed-window limiter over ``storage_uri`` (``redis://``, ``memory://`` ...)."""
    if not storage_uri:
        return None
    return FixedWindowRateLimiter(storage_from_string(storage_uri))


class RateLimiter:
    def __init__(
        self,
        scope: str,
        times: int | None = None,
        seconds: int | None = None,
    ) -> None:
        """
        Args:
            scope: bucket name shared by every route the limiter guards.
            times: requests allowed per window (default from settings).
            seconds: window length (default from settings).
        """
        self.scope = scope
        self.times = times
        self.seconds = seconds

    def _budget(self, request: Request) -> tuple[int, int]:
        settings = getattr(request.app.state, "settings", None)
        times = self.times or getattr(settings, "auth_rate_limit_requests", 300)
        seconds = self.seconds or getattr(
            settings, "auth_rate_limit_window_seconds", 900
        )
        return times, seconds

    async def __call__(self, request: Request) -> None:
        limiter = getattr(request.app.state, "rate_limiter", None)
        if limiter is None:
            return

        times, seconds = self._budget(request)
        item = RateLimitItemPerSecond(times, seconds)
        client_ip = get_client_ip(request)

        # Storage calls are blocking; keep them off the event loop
        allowed = await asyncio.to_thread(limiter.hit, item, self.scope, client_ip)
        if not allowed:
            log.warning(
                "rate_limit_exceeded",
                scope=self.scope,
                ip_hash=hash_ip(client_ip),
                limit=times,
                window_seconds=seconds,
            )
            raise RateLimitError("too many requests, slow down")
