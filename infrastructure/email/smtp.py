"""SMTP implementation of Notifier.

smtplib is blocking, so each delivery runs in a worker thread via
asyncio.to_thread(). One connection per message; no pooling or retries.

Connection mode:
  - SMTPS when ``MAIL_SECURE=true`` or the port is 465
  - otherwise plain SMTP upgraded with STARTTLS
"""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Optional

from config import EmailSettings
from infrastructure.email.templates import EmailRenderer, RenderedEmail, TemplatedNotifier
from shared.logging import get_logger

log = get_logger(__name__)

_SMTP_TIMEOUT_SECONDS = 20


class SmtpNotifier(TemplatedNotifier):
    def __init__(self, settings: EmailSettings, renderer: EmailRenderer) -> None:
        super().__init__(renderer)
        self._settings = settings

    @property
    def use_ssl(self) -> bool:
        return self._settings.mail_secure or self._settings.smtp_port == 465

    def _build_message(self, to_email: str, message: RenderedEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._settings.smtp_from
        msg["To"] = to_email
        msg["Subject"] = message.subject
        msg.set_content(message.text_body)
        msg.add_alternative(message.html_body, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        s = self._settings
        if self.use_ssl:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                s.smtp_host, s.smtp_port, timeout=_SMTP_TIMEOUT_SECONDS
            )
        else:
            server = smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=_SMTP_TIMEOUT_SECONDS)
            server.starttls()
        with server:
            server.login(s.smtp_user, s.smtp_pass)
            server.send_message(msg)

    async def _send(
        self, to_email: str, to_name: Optional[str], message: RenderedEmail
    ) -> bool:
        msg = self._build_message(to_email, message)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=message.subject,
                error_type=type(e).__name__,
            )
            return False
        log.info("email_sent_success", to_email=to_email, subject=message.subject)
        return True
