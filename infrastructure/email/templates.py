"""
Email rendering shared by every Notifier transport.

TemplatedNotifier renders the three account emails with Jinja2 and hands the
result to the transport-specific ``_send``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    "templates",
    "emails",
)

OTP_TTL_MINUTES = 10


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html_body: str
    text_body: str


class EmailRenderer:
    def __init__(
        self,
        app_name: str = "Artisan Avenue",
        app_url: str = "http://localhost:5173",
        template_dir: str = DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self.app_name = app_name
        self.app_url = app_url
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def _html(self, template: str, **context) -> str:
        return self._jinja.get_template(template).render(
            app_name=self.app_name, app_url=self.app_url, **context
        )

    @staticmethod
    def _greeting(user_name: Optional[str]) -> str:
        return f"Hi{f' {user_name}' if user_name else ''},"

    def verification(self, user_name: Optional[str], otp_code: str) -> RenderedEmail:
        text_body = (
            f"{self._greeting(user_name)}\n\n"
            f"Your {self.app_name} verification code is: {otp_code}\n\n"
            f"This code expires in {OTP_TTL_MINUTES} minutes."
        )
        return RenderedEmail(
            subject=f"Verify your {self.app_name} email",
            html_body=self._html(
                "verification.html",
                user_name=user_name,
                otp_code=otp_code,
                ttl_minutes=OTP_TTL_MINUTES,
            ),
            text_body=text_body,
        )

    def welcome(self, user_name: Optional[str]) -> RenderedEmail:
        text_body = (
            f"{self._greeting(user_name)}\n\n"
            f"Your email is verified. Welcome to {self.app_name}!\n\n"
            f"Start exploring: {self.app_url}"
        )
        return RenderedEmail(
            subject=f"Welcome to {self.app_name}",
            html_body=self._html("welcome.html", user_name=user_name),
            text_body=text_body,
        )

    def password_reset(self, user_name: Optional[str], otp_code: str) -> RenderedEmail:
        text_body = (
            f"{self._greeting(user_name)}\n\n"
            f"Use this code to reset your password: {otp_code}\n"
            f"This code expires in {OTP_TTL_MINUTES} minutes."
        )
        return RenderedEmail(
            subject=f"Your {self.app_name} reset code",
            html_body=self._html(
                "password_reset.html",
                user_name=user_name,
                otp_code=otp_code,
                ttl_minutes=OTP_TTL_MINUTES,
            ),
            text_body=text_body,
        )


class TemplatedNotifier:
    """Notifier base: subclasses implement ``_send`` for their transport."""

    def __init__(self, renderer: EmailRenderer) -> None:
        self._renderer = renderer

    async def _send(
        self, to_email: str, to_name: Optional[str], message: RenderedEmail
    ) -> bool:
        raise NotImplementedError

    async def send_verification_email(
        self, email: str, user_name: Optional[str], otp_code: str
    ) -> bool:
        return await self._send(
            email, user_name, self._renderer.verification(user_name, otp_code)
        )

    async def send_welcome_email(self, email: str, user_name: Optional[str]) -> bool:
        return await self._send(email, user_name, self._renderer.welcome(user_name))

    async def send_password_reset_email(
        self, email: str, user_name: Optional[str], otp_code: str
    ) -> bool:
        return await self._send(
            email, user_name, self._renderer.password_reset(user_name, otp_code)
        )
