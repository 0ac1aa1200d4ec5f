"""
Request DTOs for authentication endpoints.

RegisterRequest          — POST /auth/register
VerifyEmailRequest       — POST /auth/verify-email
EmailOnlyRequest         — POST /auth/verify-email/resend, POST /auth/forgot/start
LoginRequest             — POST /auth/login
ForgotVerifyRequest      — POST /auth/forgot/verify
ForgotResetRequest       — POST /auth/forgot/reset

Every field is optional at the schema level: presence and shape checks are
business rules applied by AuthService in a fixed order, so a missing role is
reported before a missing email, and so on. JSON keys are camelCase.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(_CamelRequest):
    """Request body for POST /auth/register.

    ``dob`` applies to customers; the business fields and ``categories`` to
    vendors. ``primaryCategory`` is the legacy single-category field, still
    accepted from older clients.
    """

    role: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    username: str | None = None
    address: str | None = None
    password: str | None = None
    confirm: str | None = None

    dob: str | None = None

    business_name: str | None = None
    phone: str | None = None
    website: str | None = None
    description: str | None = None
    categories: list[str] | None = None
    primary_category: str | None = None


class VerifyEmailRequest(_CamelRequest):
    """Request body for POST /auth/verify-email.

    ``code`` is the 6-character OTP sent to the account's email address.
    """

    email: str | None = None
    code: str | None = None


class EmailOnlyRequest(_CamelRequest):
    """Request body carrying only an email address."""

    email: str | None = None


class LoginRequest(_CamelRequest):
    """Request body for POST /auth/login. ``user`` is an email or a username."""

    user: str | None = None
    password: str | None = None


class ForgotVerifyRequest(_CamelRequest):
    """Request body for POST /auth/forgot/verify."""

    email: str | None = None
    code: str | None = None


class ForgotResetRequest(_CamelRequest):
    """Request body for POST /auth/forgot/reset."""

    email: str | None = None
    reset_token: str | None = None
    password: str | None = None
    confirm: str | None = None
