"""Outbound HTTP for email delivery APIs."""

from typing import Any

import httpx

USER_AGENT = "artisan-avenue-accounts/1.0"


class HttpClient:
    """Async httpx client owned by the app lifespan.

    Built once at startup and closed on shutdown, so every notifier call
    reuses the same connection pool. Connect time is capped separately from
    the overall request timeout so an unreachable API fails fast.
    """

    def __init__(self, timeout: float = 10.0, connect_timeout: float = 3.0) -> None:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        )

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
