"""Sandbox Notifier for development.

Used when no real transport is configured. Messages are logged and kept in
an in-memory outbox so a developer can read the code from the console
instead of an inbox. Never selected when ``ENV=production``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from infrastructure.email.templates import EmailRenderer, RenderedEmail, TemplatedNotifier
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class OutboxMessage:
    to_email: str
    to_name: Optional[str]
    subject: str
    text_body: str


class SandboxNotifier(TemplatedNotifier):
    def __init__(self, renderer: EmailRenderer, max_messages: int = 100) -> None:
        super().__init__(renderer)
        self._max_messages = max_messages
        self.outbox: list[OutboxMessage] = []

    async def _send(
        self, to_email: str, to_name: Optional[str], message: RenderedEmail
    ) -> bool:
        self.outbox.append(
            OutboxMessage(
                to_email=to_email,
                to_name=to_name,
                subject=message.subject,
                text_body=message.text_body,
            )
        )
        del self.outbox[: -self._max_messages]
        log.info(
            "sandbox_email_captured",
            to_email=to_email,
            subject=message.subject,
            preview=message.text_body,
        )
        return True
