"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent ``{ok: false, code, error}`` JSON
responses.

Non-AppError exceptions bubble up as 500s (with Sentry reporting in
production) and never leak internal detail to the client.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "ERR_SERVER"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details
        if error_code is not None:
            self.error_code = error_code

    def to_dict(self) -> dict:
        payload: dict = {"ok": False, "code": self.error_code, "error": self.message}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


# ── Categories ───────────────────────────────────────────────────────────────


class ValidationError(AppError):
    status_code = 400
    error_code = "ERR_VALIDATION"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "ERR_UNAUTHENTICATED"


class NotFoundError(AppError):
    status_code = 404
    error_code = "ERR_NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    error_code = "ERR_CONFLICT"


class RateLimitError(AppError):
    status_code = 429
    error_code = "ERR_RATE_LIMITED"


class ServerError(AppError):
    status_code = 500
    error_code = "ERR_SERVER"


# ── Input validation ─────────────────────────────────────────────────────────


class RequiredFieldError(ValidationError):
    error_code = "ERR_REQUIRED"


class InvalidEmailError(ValidationError):
    error_code = "ERR_INVALID_EMAIL"


class InvalidPhoneError(ValidationError):
    error_code = "ERR_INVALID_PHONE_AU"


class WeakPasswordError(ValidationError):
    error_code = "ERR_PASSWORD_WEAK"


class PasswordMismatchError(ValidationError):
    error_code = "ERR_PASSWORD_MISMATCH"


# ── Account state ────────────────────────────────────────────────────────────


class EmailTakenError(ConflictError):
    error_code = "ERR_EMAIL_TAKEN"


class UsernameTakenError(ConflictError):
    error_code = "ERR_USERNAME_TAKEN"


class NoSuchAccountError(ValidationError):
    error_code = "ERR_NO_USER"


class AccountNotFoundError(NotFoundError):
    error_code = "ERR_NOT_FOUND"


# ── One-time codes ───────────────────────────────────────────────────────────


class CodeExpiredError(ValidationError):
    error_code = "ERR_CODE_EXPIRED"


class CodeIncorrectError(ValidationError):
    error_code = "ERR_CODE_INCORRECT"


class NoResetSessionError(ValidationError):
    error_code = "ERR_NO_RESET_SESSION"


class TooManyAttemptsError(RateLimitError):
    """Terminal for the current reset window; only forgot/start recovers."""

    error_code = "ERR_TOO_MANY_TRIES"


# ── Credentials and tokens ───────────────────────────────────────────────────


class AuthFailedError(AuthenticationError):
    """Bad credentials. Deliberately does not say which part was wrong."""

    error_code = "ERR_AUTH_FAILED"


class UnauthenticatedError(AuthenticationError):
    """Missing (``NO_TOKEN``) or invalid (``BAD_TOKEN``) session cookie."""

    error_code = "BAD_TOKEN"


class BadResetTokenError(AuthenticationError):
    error_code = "ERR_BAD_RESET_TOKEN"


# ── Collaborators ────────────────────────────────────────────────────────────


class NotificationError(ServerError):
    """A transactional email (verification or reset code) could not be sent."""


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        err = RequiredFieldError(
            "malformed request body",
            details=[
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")}
                for e in exc.errors()
            ],
        )
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "code": "ERR_SERVER",
                "error": "An internal server error occurred.",
            },
        )
