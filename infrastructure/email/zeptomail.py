"""ZeptoMail HTTP implementation of Notifier.

Sends through the ZeptoMail REST API with the shared async HttpClient.
Failures are logged and reported as ``False``; the caller decides whether
the email was essential.
"""

from typing import Optional

from config import EmailSettings
from infrastructure.email.templates import EmailRenderer, RenderedEmail, TemplatedNotifier
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.com/v1.1/email"


class ZeptoMailNotifier(TemplatedNotifier):
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        renderer: EmailRenderer,
    ) -> None:
        super().__init__(renderer)
        self._settings = settings
        self._http = http_client

    async def _send(
        self, to_email: str, to_name: Optional[str], message: RenderedEmail
    ) -> bool:
        if not self._settings.zepto_api_token:
            log.error("zepto_mail_send_failed", reason="token_not_configured")
            return False

        payload: dict = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [
                {
                    "email_address": {
                        "address": to_email,
                        "name": to_name or to_email,
                    }
                }
            ],
            "subject": message.subject,
            "htmlbody": message.html_body,
            "textbody": message.text_body,
        }

        token = self._settings.zepto_api_token
        if not token.startswith("Zoho-enczapikey "):
            token = f"Zoho-enczapikey {token}"

        headers = {"Authorization": token, "Content-Type": "application/json"}

        try:
            response = await self._http.post(
                _ZEPTO_API_URL, json=payload, headers=headers
            )
            if response.status_code in (200, 201, 202):
                log.info("email_sent_success", to_email=to_email, subject=message.subject)
                return True
            log.error(
                "email_sent_failed",
                to_email=to_email,
                subject=message.subject,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False
        except Exception as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=message.subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
