"""
Common response DTOs shared across multiple endpoints.

ErrorResponse    — standard error shape from AppError.to_dict()
OkResponse       — bare ``{ok: true}`` acknowledgement
HealthResponse   — GET /health
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error JSON body produced by the AppError exception handler."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = False
    code: str
    error: str
    field: Optional[str] = None
    details: Optional[Any] = None


class OkResponse(BaseModel):
    """Acknowledgement with no payload."""

    ok: bool = True


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    status: str
    checks: dict[str, str]
