"""
Account authentication and verification flows.

AuthService composes the account store, credential hasher, token service and
notifier. It is stateless between calls: every window, throttle marker and
attempt counter lives on the account document and is evaluated lazily
against the injected clock.

Flows
-----
register              create an unverified account and email a code
verify_email          consume the verification code, start a session
resend_verification   re-issue the verification code (throttled)
login / me            password sign-in; current account from a session
forgot_start          Idle → CodeSent        (email a reset code)
forgot_verify         CodeSent → CodeVerified (exchange code for reset token)
forgot_reset          CodeVerified → Reset    (set a new password)

resend_verification and forgot_start never reveal whether an account exists:
unknown, throttled and successful requests all return normally.

The reset attempt counter is a read-modify-write on the document, so
concurrent forgot_verify calls for one account can under-count attempts.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from errors import (
    AccountNotFoundError,
    AuthFailedError,
    BadResetTokenError,
    CodeExpiredError,
    CodeIncorrectError,
    EmailTakenError,
    InvalidEmailError,
    InvalidPhoneError,
    NoResetSessionError,
    NoSuchAccountError,
    NotificationError,
    PasswordMismatchError,
    RequiredFieldError,
    TooManyAttemptsError,
    UsernameTakenError,
    WeakPasswordError,
)
from infrastructure.email.protocol import Notifier
from repositories.protocol import AccountStore
from schemas.dto.requests.auth import RegisterRequest
from schemas.models.account import ROLES, AccountDoc, SafeView, VendorProfile, to_safe_view
from services.token_service import TokenService
from shared.crypto import CredentialHasher
from shared.datetime_utils import ensure_utc, parse_datetime, utcnow
from shared.generators import generate_otp_code, normalize_otp_input
from shared.logging import get_logger
from shared.validators import (
    is_au_phone,
    is_email,
    is_strong_password,
    normalize_categories,
    normalize_email,
)

log = get_logger(__name__)

OTP_TTL_SECONDS = 600  # 10 minutes
CODE_THROTTLE_SECONDS = 60
MAX_RESET_ATTEMPTS = 5


@dataclass(frozen=True)
class SessionResult:
    """A signed-in account: its safe view plus the session token for the cookie."""

    user: SafeView
    session_token: str


class AuthService:
    def __init__(
        self,
        store: AccountStore,
        hasher: CredentialHasher,
        tokens: TokenService,
        notifier: Notifier,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._tokens = tokens
        self._notifier = notifier
        self._clock = clock
        self._dummy_hash: Optional[str] = None

    # ── Helpers ─────────────────────────────────────────────────────────────

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    def _session_for(self, account: AccountDoc) -> SessionResult:
        view = to_safe_view(account)
        return SessionResult(user=view, session_token=self._tokens.issue_session_token(view))

    @staticmethod
    def _throttled(last_sent: Optional[datetime], now: datetime) -> bool:
        last_sent = ensure_utc(last_sent)
        return last_sent is not None and now - last_sent < timedelta(
            seconds=CODE_THROTTLE_SECONDS
        )

    async def _new_code(self) -> tuple[str, str]:
        code = generate_otp_code()
        return code, await self._hasher.hash(code)

    async def _deliver_code(
        self,
        send: Callable[[str, Optional[str], str], Awaitable[bool]],
        account: AccountDoc,
        code: str,
        purpose: str,
    ) -> None:
        if not await send(account.email, account.first_name, code):
            log.error("otp_email_failed", user_id=str(account.id), purpose=purpose)
            raise NotificationError(f"could not send the {purpose} code")

    async def _send_welcome(self, account: AccountDoc) -> None:
        try:
            sent = await self._notifier.send_welcome_email(account.email, account.first_name)
        except Exception as e:
            log.error(
                "welcome_email_failed",
                user_id=str(account.id),
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        if not sent:
            log.warning("welcome_email_failed", user_id=str(account.id))

    async def _burn_hash_check(self, password: str) -> None:
        """Spend one hash verification so unknown identifiers cost the same."""
        if self._dummy_hash is None:
            self._dummy_hash = await self._hasher.hash(secrets.token_urlsafe(16))
        await self._hasher.verify(password, self._dummy_hash)

    # ── Registration ────────────────────────────────────────────────────────

    async def register(self, req: RegisterRequest) -> AccountDoc:
        """Create an unverified account and email its verification code.

        Checks run in a fixed order and the first failure is raised. A
        duplicate-key clash from the store (concurrent registration) surfaces
        as EmailTakenError / UsernameTakenError as well.

        Raises:
            RequiredFieldError, InvalidEmailError, EmailTakenError,
            UsernameTakenError, WeakPasswordError, PasswordMismatchError,
            InvalidPhoneError, NotificationError
        """
        role = (req.role or "").strip()
        if role not in ROLES:
            raise RequiredFieldError("role required", field="role")

        first_name = (req.first_name or "").strip()
        last_name = (req.last_name or "").strip()
        if not first_name or not last_name:
            raise RequiredFieldError(
                "first/last name required",
                field="firstName" if not first_name else "lastName",
            )

        email = normalize_email(req.email)
        if not email or not is_email(email):
            raise InvalidEmailError("invalid email", field="email")

        if await self._store.find_by_email(email) is not None:
            log.warning("registration_failed", reason="email_exists")
            raise EmailTakenError("email already registered", field="email")

        username = (req.username or "").strip() or None
        if username and await self._store.find_by_username(username) is not None:
            log.warning("registration_failed", reason="username_exists")
            raise UsernameTakenError("username already taken", field="username")

        password = req.password or ""
        if not is_strong_password(password):
            raise WeakPasswordError("weak password", field="password")
        if password != (req.confirm or ""):
            raise PasswordMismatchError("passwords do not match", field="confirm")

        dob: Optional[datetime] = None
        vendor: Optional[VendorProfile] = None
        if role == "customer":
            dob = parse_datetime(req.dob)
            if dob is None:
                raise RequiredFieldError("dob required", field="dob")
        else:
            business_name = (req.business_name or "").strip()
            description = (req.description or "").strip()
            phone = (req.phone or "").strip()
            website = (req.website or "").strip() or None
            categories = normalize_categories(
                [*(req.categories or []), req.primary_category]
            )
            if not business_name or not description or not categories:
                raise RequiredFieldError("vendor fields required", field="vendor")
            if not phone or not is_au_phone(phone):
                raise InvalidPhoneError("invalid AU phone", field="phone")
            vendor = VendorProfile(
                business_name=business_name,
                phone=phone,
                website=website,
                description=description,
                categories=categories,
            )

        now = self._now()
        code, code_hash = await self._new_code()
        account = AccountDoc(
            role=role,
            first_name=first_name,
            last_name=last_name,
            email=email,
            username=username,
            password_hash=await self._hasher.hash(password),
            address=(req.address or "").strip() or None,
            dob=dob,
            vendor=vendor,
            is_verified=False,
        )
        account.open_verify_window(
            code_hash, now + timedelta(seconds=OTP_TTL_SECONDS), now
        )
        account = await self._store.create(account)

        log.info(
            "user_registered",
            user_id=str(account.id),
            role=role,
            has_username=bool(username),
        )

        await self._deliver_code(
            self._notifier.send_verification_email, account, code, "verification"
        )
        return account

    # ── Email verification ──────────────────────────────────────────────────

    async def verify_email(self, email: Optional[str], code: Optional[str]) -> SessionResult:
        """Mark the account verified and sign it in.

        Already-verified accounts succeed without checking the code value. There is
        no attempt counter on this flow.
        """
        email = normalize_email(email)
        code = normalize_otp_input(code)
        if not email or not code:
            raise RequiredFieldError("email/code required")

        account = await self._store.find_by_email(email)
        if account is None:
            raise NoSuchAccountError("account not found")

        if account.is_verified:
            return self._session_for(account)

        now = self._now()
        if not account.has_verify_window or account.verify_window_expired(now):
            if account.verify_code_hash or account.verify_code_expires_at:
                account.clear_verify_window()
                await self._store.save(account)
            log.warning("email_verification_failed", user_id=str(account.id), reason="expired")
            raise CodeExpiredError("code expired")

        if not await self._hasher.verify(code, account.verify_code_hash):
            log.warning(
                "email_verification_failed", user_id=str(account.id), reason="incorrect"
            )
            raise CodeIncorrectError("incorrect code")

        account.is_verified = True
        account.clear_verify_window()
        await self._store.save(account)
        log.info("email_verified", user_id=str(account.id))

        await self._send_welcome(account)
        return self._session_for(account)

    async def resend_verification(self, email: Optional[str]) -> None:
        email = normalize_email(email)
        if not is_email(email):
            return

        account = await self._store.find_by_email(email)
        if account is None or account.is_verified:
            log.info("verification_resend_skipped", reason="not_applicable")
            return

        now = self._now()
        if self._throttled(account.last_verify_email_sent_at, now):
            log.info(
                "verification_resend_skipped", user_id=str(account.id), reason="throttled"
            )
            return

        code, code_hash = await self._new_code()
        account.open_verify_window(code_hash, now + timedelta(seconds=OTP_TTL_SECONDS), now)
        await self._store.save(account)
        log.info("verification_code_resent", user_id=str(account.id))

        await self._deliver_code(
            self._notifier.send_verification_email, account, code, "verification"
        )

    # ── Sessions ────────────────────────────────────────────────────────────

    async def login(self, identifier: Optional[str], password: Optional[str]) -> SessionResult:
        """Sign in by email (identifier contains ``@``) or exact username.

        Unknown identifiers and wrong passwords raise the same AuthFailedError.
        Unverified accounts may sign in.
        """
        identifier = (identifier or "").strip()
        password = password or ""
        if not identifier or not password:
            raise RequiredFieldError("user/password required")

        if "@" in identifier:
            account = await self._store.find_by_email(identifier.lower())
        else:
            account = await self._store.find_by_username(identifier)

        if account is None:
            await self._burn_hash_check(password)
            log.warning("login_failed", reason="invalid_credentials")
            raise AuthFailedError("invalid credentials")

        if not await self._hasher.verify(password, account.password_hash):
            log.warning("login_failed", reason="invalid_credentials", user_id=str(account.id))
            raise AuthFailedError("invalid credentials")

        log.info("login_success", user_id=str(account.id), is_verified=account.is_verified)
        return self._session_for(account)

    async def me(self, session_token: Optional[str]) -> SafeView:
        """Current account, re-read from the store rather than the token claims."""
        claims = self._tokens.verify_session_token(session_token)
        account = await self._store.find_by_id(claims.id)
        if account is None:
            raise AccountNotFoundError("account no longer exists")
        return to_safe_view(account)

    # ── Forgot password ─────────────────────────────────────────────────────

    async def forgot_start(self, email: Optional[str]) -> None:
        email = normalize_email(email)
        if not email or not is_email(email):
            return

        account = await self._store.find_by_email(email)
        if account is None:
            log.info("password_reset_skipped", reason="not_applicable")
            return

        now = self._now()
        if self._throttled(account.last_reset_request_at, now):
            log.info("password_reset_skipped", user_id=str(account.id), reason="throttled")
            return

        code, code_hash = await self._new_code()
        account.open_reset_window(code_hash, now + timedelta(seconds=OTP_TTL_SECONDS), now)
        await self._store.save(account)
        log.info("password_reset_code_issued", user_id=str(account.id))

        await self._deliver_code(
            self._notifier.send_password_reset_email, account, code, "password reset"
        )

    async def forgot_verify(self, email: Optional[str], code: Optional[str]) -> str:
        """Exchange a correct reset code for a reset token.

        The window closes on success, on expiry and once the attempt cap is
        reached; after that only forgot_start opens a new one.
        """
        email = normalize_email(email)
        code = normalize_otp_input(code)
        if not email or not code:
            raise RequiredFieldError("email/code required")

        account = await self._store.find_by_email(email)
        if account is None or not account.has_reset_window:
            raise NoResetSessionError("no reset session")

        now = self._now()
        if account.reset_window_expired(now):
            account.clear_reset_window()
            await self._store.save(account)
            log.warning("password_reset_verify_failed", user_id=str(account.id), reason="expired")
            raise CodeExpiredError("code expired")

        if account.reset_code_attempts >= MAX_RESET_ATTEMPTS:
            account.clear_reset_window()
            await self._store.save(account)
            log.warning(
                "password_reset_verify_failed", user_id=str(account.id), reason="max_attempts"
            )
            raise TooManyAttemptsError("too many attempts")

        if not await self._hasher.verify(code, account.reset_code_hash):
            account.reset_code_attempts += 1
            await self._store.save(account)
            log.warning(
                "password_reset_verify_failed",
                user_id=str(account.id),
                reason="incorrect",
                attempts=account.reset_code_attempts,
            )
            raise CodeIncorrectError("incorrect code")

        account.clear_reset_window()
        await self._store.save(account)
        log.info("password_reset_code_verified", user_id=str(account.id))
        return self._tokens.issue_reset_token(str(account.id), account.email)

    async def forgot_reset(
        self,
        email: Optional[str],
        reset_token: Optional[str],
        password: Optional[str],
        confirm: Optional[str],
    ) -> None:
        """Set a new password with a reset token.

        The token is not tracked as spent; it stays usable until it expires.
        Existing sessions are not revoked (the route only clears the caller's
        cookie).
        """
        email = normalize_email(email)
        if not email or not reset_token or not password or not confirm:
            raise RequiredFieldError("missing fields")
        if not is_strong_password(password):
            raise WeakPasswordError("weak password", field="password")
        if password != confirm:
            raise PasswordMismatchError("passwords do not match", field="confirm")

        try:
            claims = self._tokens.verify_reset_token(reset_token)
        except BadResetTokenError:
            log.warning("password_reset_failed", reason="bad_token")
            raise

        account = await self._store.find_by_id(claims.account_id)
        if account is None or account.email != email:
            log.warning("password_reset_failed", reason="account_mismatch")
            raise NoSuchAccountError("user not found")

        account.password_hash = await self._hasher.hash(password)
        await self._store.save(account)
        log.info("password_reset_completed", user_id=str(account.id))
