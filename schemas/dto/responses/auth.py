"""
Response DTOs for authentication endpoints.

UserResponse        — POST /auth/verify-email, POST /auth/login, GET /auth/me
ResetTokenResponse  — POST /auth/forgot/verify

Endpoints that only acknowledge (register, resend, logout, forgot/start,
forgot/reset) return common.OkResponse.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from schemas.models.account import SafeView


class UserResponse(BaseModel):
    """``{ok: true, user: SafeView}``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ok: bool = True
    user: SafeView


class ResetTokenResponse(BaseModel):
    """``{ok: true, resetToken}`` — the capability for the final reset step."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ok: bool = True
    reset_token: str
