"""
Session and reset tokens — signing, verification and cookie transport.

Session tokens carry the account's safe view and live 7 days in the
HTTP-only cookie. Reset tokens carry ``{sub, email, purpose="reset"}``, live
15 minutes and travel in a response body. Both are HS256 JWTs; the reset
token uses its own secret when one is configured.

Validity is signature + expiry only. There is no revocation list, so a
session survives a password change until it expires and a reset token can be
replayed within its lifetime.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import jwt
from starlette.responses import Response

from config import JWTSettings
from errors import BadResetTokenError, UnauthenticatedError
from schemas.models.account import SafeView
from shared.datetime_utils import utcnow

_ALGORITHM = "HS256"
RESET_PURPOSE = "reset"
SESSION_TYPE = "session"


@dataclass(frozen=True)
class ResetClaims:
    account_id: str
    email: str


class TokenService:
    """Issues and verifies session/reset tokens and manages the session cookie.

    Args:
        settings: JWT configuration (secrets, TTLs, cookie name).
        secure_cookies: value of the cookie ``secure`` flag; ``True`` in
            production. Setting and clearing must use the same value or some
            browsers keep the old cookie.
    """

    def __init__(self, settings: JWTSettings, secure_cookies: bool = False) -> None:
        if not settings.jwt_secret:
            raise RuntimeError("JWT_SECRET must be set")
        self._settings = settings
        self._session_secret = settings.jwt_secret
        self._reset_secret = settings.reset_jwt_secret or settings.jwt_secret
        self.secure_cookies = secure_cookies

    @property
    def cookie_name(self) -> str:
        return self._settings.session_cookie_name

    def _encode(self, claims: dict, secret: str, ttl_seconds: int, now: datetime) -> str:
        claims = {
            **claims,
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        }
        return jwt.encode(claims, secret, algorithm=_ALGORITHM)

    def _decode(self, token: str, secret: str) -> dict:
        return jwt.decode(
            token,
            secret,
            algorithms=[_ALGORITHM],
            audience=self._settings.jwt_audience,
            issuer=self._settings.jwt_issuer,
        )

    # ── Session ─────────────────────────────────────────────────────────────

    def issue_session_token(self, view: SafeView, now: Optional[datetime] = None) -> str:
        claims = view.model_dump(by_alias=True)
        claims["sub"] = claims.pop("id")
        claims["type"] = SESSION_TYPE
        return self._encode(
            claims,
            self._session_secret,
            self._settings.session_token_ttl_seconds,
            now or utcnow(),
        )

    def verify_session_token(self, token: Optional[str]) -> SafeView:
        """Return the safe view embedded in a session token.

        Raises:
            UnauthenticatedError: ``NO_TOKEN`` when absent, ``BAD_TOKEN`` on a
                bad signature, expiry, or a token of another type.
        """
        if not token:
            raise UnauthenticatedError("not signed in", error_code="NO_TOKEN")
        try:
            claims = self._decode(token, self._session_secret)
            if claims.get("type") != SESSION_TYPE:
                raise jwt.InvalidTokenError("not a session token")
            return SafeView.model_validate({**claims, "id": claims["sub"]})
        except (jwt.InvalidTokenError, KeyError, ValueError):
            raise UnauthenticatedError("invalid or expired session", error_code="BAD_TOKEN")

    def set_session_cookie(self, response: Response, token: str) -> Response:
        response.set_cookie(
            self.cookie_name,
            value=token,
            max_age=self._settings.session_token_ttl_seconds,
            path="/",
            secure=self.secure_cookies,
            httponly=True,
            samesite="lax",
        )
        return response

    def clear_session_cookie(self, response: Response) -> Response:
        response.delete_cookie(
            self.cookie_name,
            path="/",
            secure=self.secure_cookies,
            httponly=True,
            samesite="lax",
        )
        return response

    # ── Password reset ──────────────────────────────────────────────────────

    def issue_reset_token(
        self, account_id: str, email: str, now: Optional[datetime] = None
    ) -> str:
        return self._encode(
            {"sub": str(account_id), "email": email, "purpose": RESET_PURPOSE},
            self._reset_secret,
            self._settings.reset_token_ttl_seconds,
            now or utcnow(),
        )

    def verify_reset_token(self, token: str) -> ResetClaims:
        try:
            claims = self._decode(token, self._reset_secret)
        except jwt.InvalidTokenError:
            raise BadResetTokenError("invalid or expired reset token")
        if claims.get("purpose") != RESET_PURPOSE or not claims.get("sub"):
            raise BadResetTokenError("invalid or expired reset token")
        return ResetClaims(account_id=claims["sub"], email=claims.get("email") or "")
