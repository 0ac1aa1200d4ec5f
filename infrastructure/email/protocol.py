"""Notifier protocol. AuthService depends on this, never on a transport.

Implementations: ZeptoMailNotifier (HTTP API), SmtpNotifier (smtplib) and
SandboxNotifier (in-memory outbox for development). build_notifier() picks
one at startup.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    """Out-of-band delivery of account emails.

    Each call returns ``True`` once the message is accepted by the transport
    and ``False`` when delivery failed. Implementations log failures and do
    not raise for transport errors.
    """

    async def send_verification_email(
        self, email: str, user_name: Optional[str], otp_code: str
    ) -> bool:
        """Deliver the 6-character email verification code."""
        ...

    async def send_welcome_email(self, email: str, user_name: Optional[str]) -> bool:
        """Best-effort greeting after the address is verified."""
        ...

    async def send_password_reset_email(
        self, email: str, user_name: Optional[str], otp_code: str
    ) -> bool:
        """Deliver the 6-character password-reset code."""
        ...
