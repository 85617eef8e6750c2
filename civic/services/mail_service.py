"""Mail port: best-effort delivery of notification summaries."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

logger = logging.getLogger(__name__)


class MailPort(Protocol):
    def send(self, to: str, subject: str, body: str) -> None: ...


class LoggingMailer:
    """Used when no SMTP host is configured; records what would be sent."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    def send(self, to: str, subject: str, body: str) -> None:
        self.sent.append((to, subject, body))
        logger.info("mail (not delivered, no SMTP host): to=%s subject=%s", to, subject)


class SmtpMailer:
    """SMTP delivery. Errors propagate; the notification dispatcher swallows them."""

    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        from_name: str = "",
        user: str = "",
        password: str = "",
        timeout: float = 5.0,
    ) -> None:
        self.host = host
        self.port = port
        self.from_address = from_address
        self.from_name = from_name
        self.user = user
        self.password = password
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["From"] = f"{self.from_name} <{self.from_address}>" if self.from_name else self.from_address
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)

        if self.port == 465:
            client: smtplib.SMTP = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            client = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        with client:
            if self.port != 465:
                client.starttls()
            if self.user:
                client.login(self.user, self.password)
            client.send_message(msg)
