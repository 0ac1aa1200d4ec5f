"""Resolve the Notifier once at process start.

Priority: ZeptoMail token → SMTP credentials → sandbox outbox. Production
refuses to fall back to the sandbox, since codes would never reach users.
"""

from __future__ import annotations

from typing import Optional

from config import AppSettings
from infrastructure.email.protocol import Notifier
from infrastructure.email.sandbox import SandboxNotifier
from infrastructure.email.smtp import SmtpNotifier
from infrastructure.email.templates import EmailRenderer
from infrastructure.email.zeptomail import ZeptoMailNotifier
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)


def build_notifier(
    settings: AppSettings, http_client: Optional[HttpClient] = None
) -> Notifier:
    email = settings.email
    renderer = EmailRenderer(app_name=settings.app_name, app_url=settings.app_url)

    if email.zepto_api_token:
        log.info("notifier_selected", transport="zeptomail")
        return ZeptoMailNotifier(email, http_client or HttpClient(), renderer)

    if email.smtp_configured:
        log.info(
            "notifier_selected",
            transport="smtp",
            host=email.smtp_host,
            port=email.smtp_port,
        )
        return SmtpNotifier(email, renderer)

    if settings.is_production:
        raise RuntimeError(
            "No email transport configured: set ZEPTO_API_TOKEN or SMTP_HOST/SMTP_USER/SMTP_PASS"
        )

    log.warning("notifier_selected", transport="sandbox")
    return SandboxNotifier(renderer)
