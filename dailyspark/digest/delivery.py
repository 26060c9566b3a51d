"""
DailySpark Digest Delivery

SMTP email delivery for the daily topics digest.

The aggregation pipeline only depends on the ``EmailSender`` protocol:
``await sender.send(to, subject, html) -> SendResult``. Delivery problems are
reported through the result, never raised, so a failed email cannot fail an
aggregation.
"""

from __future__ import annotations

import asyncio
import html
import re
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from enum import Enum
from typing import Protocol

from dailyspark.config import Settings
from dailyspark.observability.logging import get_logger
from dailyspark.observability.telemetry import counter

logger = get_logger(__name__)


class NotificationOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    NOT_CONFIGURED = "not_configured"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SendResult:
    """Outcome of one send attempt."""

    succeeded: bool
    error: str | None = None

    @property
    def outcome(self) -> NotificationOutcome:
        if self.succeeded:
            return NotificationOutcome.SENT
        if self.error == NotificationOutcome.NOT_CONFIGURED.value:
            return NotificationOutcome.NOT_CONFIGURED
        return NotificationOutcome.FAILED

    @classmethod
    def not_configured(cls) -> SendResult:
        return cls(succeeded=False, error=NotificationOutcome.NOT_CONFIGURED.value)


class EmailSender(Protocol):
    async def send(self, to: str, subject: str, html: str) -> SendResult: ...


class SmtpEmailSender:
    """Sends HTML email over SMTP with STARTTLS"""

    def __init__(self, settings: Settings):
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.from_email = settings.sender_email
        self.from_name = settings.sender_name
        self.enabled = settings.email_configured

        if not self.enabled:
            logger.warning("SMTP not fully configured. Set SMTP_* environment variables.")
        else:
            logger.info(
                "SMTP delivery configured: %s@%s:%s",
                self.smtp_user,
                self.smtp_host,
                self.smtp_port,
            )

    def build_message(self, to_email: str, subject: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg["Date"] = formatdate(localtime=True)

        # Plaintext part first; clients pick the last part they can render
        msg.attach(MIMEText(html_to_plaintext(html), "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def send_sync(self, to_email: str, subject: str, html: str) -> SendResult:
        """
        Send one email, blocking.

        Returns:
            SendResult; never raises for transport or configuration problems
        """
        host, user, password = self.smtp_host, self.smtp_user, self.smtp_password
        if not (self.enabled and host and user and password):
            logger.error("SMTP delivery not enabled. Configure SMTP_* environment variables.")
            counter("email.not_configured")
            return SendResult.not_configured()

        try:
            msg = self.build_message(to_email, subject, html)
            logger.info("Connecting to %s:%s", host, self.smtp_port)

            with smtplib.SMTP(host, self.smtp_port) as server:
                server.starttls()
                server.login(user, password)
                server.send_message(msg)

        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email: %s", e)
            counter("email.failed")
            return SendResult(succeeded=False, error=str(e))

        logger.info("Digest sent, subject: %s", subject)
        counter("email.sent")
        return SendResult(succeeded=True)

    async def send(self, to: str, subject: str, html: str) -> SendResult:
        return await asyncio.to_thread(self.send_sync, to, subject, html)


def html_to_plaintext(markup: str) -> str:
    """
    Plaintext alternative for the digest.

    Cards and paragraphs become line breaks, links keep their text, and HTML
    entities are decoded.
    """
    text = re.sub(r"<h[1-6][^>]*>", "\n\n", markup)
    text = re.sub(r"</h[1-6]>", "\n", text)
    text = re.sub(r"</?(p|div)[^>]*>", "\n", text)
    text = html.unescape(re.sub(r"<[^>]+>", "", text)).replace("\xa0", " ")

    text = re.sub(r"\n\s*\n", "\n\n", text)
    return text.strip()
