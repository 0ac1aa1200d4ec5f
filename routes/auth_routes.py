"""
Authentication endpoints.

POST /auth/register               create an unverified account (201)
POST /auth/verify-email           consume the verification code, set session cookie
POST /auth/verify-email/resend    re-send the verification code
POST /auth/login                  password sign-in, set session cookie
POST /auth/logout                 clear session cookie
GET  /auth/me                     current account from the session cookie
POST /auth/forgot/start           email a reset code
POST /auth/forgot/verify          exchange the code for a reset token
POST /auth/forgot/reset           set a new password, clear session cookie

Every route shares the "auth" rate-limit bucket. Bodies use camelCase keys;
all fields are optional at the schema level so that missing values reach the
service and surface as ERR_REQUIRED in the documented check order.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from dependencies import get_auth_service, get_token_service
from infrastructure.rate_limiter import RateLimiter
from schemas.dto.requests.auth import (
    EmailOnlyRequest,
    ForgotResetRequest,
    ForgotVerifyRequest,
    LoginRequest,
    RegisterRequest,
    VerifyEmailRequest,
)
from schemas.dto.responses.auth import ResetTokenResponse, UserResponse
from schemas.dto.responses.common import ErrorResponse, OkResponse
from services.auth_service import AuthService
from services.token_service import TokenService

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    dependencies=[Depends(RateLimiter("auth"))],
    responses={
        status: {"model": ErrorResponse} for status in (400, 401, 404, 409, 429, 500)
    },
)


def _ok(status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=OkResponse().model_dump())


def _user(response_model: UserResponse) -> JSONResponse:
    return JSONResponse(content=response_model.model_dump(by_alias=True))


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    await auth.register(body)
    return _ok(201)


@router.post("/verify-email")
async def verify_email(
    body: VerifyEmailRequest,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
) -> JSONResponse:
    result = await auth.verify_email(body.email, body.code)
    resp = _user(UserResponse(user=result.user))
    return tokens.set_session_cookie(resp, result.session_token)


@router.post("/verify-email/resend")
async def resend_verification(
    body: EmailOnlyRequest,
    auth: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    await auth.resend_verification(body.email)
    return _ok()


@router.post("/login")
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
) -> JSONResponse:
    result = await auth.login(body.user, body.password)
    resp = _user(UserResponse(user=result.user))
    return tokens.set_session_cookie(resp, result.session_token)


@router.post("/logout")
async def logout(tokens: TokenService = Depends(get_token_service)) -> JSONResponse:
    return tokens.clear_session_cookie(_ok())


@router.get("/me")
async def me(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
) -> JSONResponse:
    user = await auth.me(request.cookies.get(tokens.cookie_name))
    return _user(UserResponse(user=user))


@router.post("/forgot/start")
async def forgot_start(
    body: EmailOnlyRequest,
    auth: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    await auth.forgot_start(body.email)
    return _ok()


@router.post("/forgot/verify")
async def forgot_verify(
    body: ForgotVerifyRequest,
    auth: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    reset_token = await auth.forgot_verify(body.email, body.code)
    return JSONResponse(
        content=ResetTokenResponse(reset_token=reset_token).model_dump(by_alias=True)
    )


@router.post("/forgot/reset")
async def forgot_reset(
    body: ForgotResetRequest,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
) -> JSONResponse:
    await auth.forgot_reset(body.email, body.reset_token, body.password, body.confirm)
    return tokens.clear_session_cookie(_ok())
