"""
Client IP resolution for rate limiting and log fingerprints.

The service runs behind a reverse proxy (Cloudflare or nginx in front of
uvicorn), so the peer address is usually the proxy's. Forwarding headers are
consulted first.
"""

from __future__ import annotations

from fastapi import Request

# Highest priority first; X-Forwarded-For may hold a chain, first hop wins
PROXY_IP_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
    "X-Client-IP",
)


def _first_hop(value: str | None) -> str:
    return (value or "").split(",")[0].strip()


def get_client_ip(request: Request) -> str:
    """Best-effort client address for *request*.

    Returns the first non-empty proxy header value, then the socket peer,
    then ``""`` when neither is known (e.g. a bare ASGI scope in tests).
    """
    for header in PROXY_IP_HEADERS:
        ip = _first_hop(request.headers.get(header))
        if ip:
            return ip
    return request.client.host if request.client else ""
