"""
Email Senders - Deliver auth emails over SMTP or to the log.

Features:
- Console backend for development (codes appear in the log)
- SMTP delivery in a worker thread with a hard timeout
- Automatic retries with exponential backoff
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from notetaker.config.errors import ErrorCode, ExternalServiceError
from notetaker.config.settings import Settings

from .templates import EmailContent, otp_email, welcome_email

logger = logging.getLogger(__name__)

__all__ = ["ConsoleMailer", "SmtpMailer", "build_mailer"]


class _TemplateMailer:
    """Renders templates and hands them to ``send``."""

    async def send(self, to: str, content: EmailContent) -> None:
        raise NotImplementedError

    async def send_otp(self, to: str, name: str, code: str, expiry_minutes: int) -> None:
        await self.send(to, otp_email(name, code, expiry_minutes))

    async def send_welcome(self, to: str, name: str) -> None:
        await self.send(to, welcome_email(name))


class ConsoleMailer(_TemplateMailer):
    """Writes emails to the log instead of sending them."""

    async def send(self, to: str, content: EmailContent) -> None:
        logger.info("Email to %s: %s\n%s", to, content.subject, content.text)


class SmtpMailer(_TemplateMailer):
    """
    SMTP delivery.

    Example:
        >>> mailer = SmtpMailer(host="smtp.gmail.com", port=587, username="...", password="...")
        >>> await mailer.send_otp("alice@example.com", "Alice", "123456", 10)
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        sender: str = "no-reply@notetaker.local",
        use_tls: bool = True,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.timeout_seconds = timeout_seconds

    def _message(self, to: str, content: EmailContent) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = content.subject
        message.set_content(content.text)
        message.add_alternative(content.html, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

    @retry(
        retry=retry_if_exception_type((smtplib.SMTPException, OSError, asyncio.TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _send_with_retry(self, message: EmailMessage) -> None:
        await asyncio.wait_for(
            asyncio.to_thread(self._deliver, message),
            timeout=self.timeout_seconds,
        )

    async def send(self, to: str, content: EmailContent) -> None:
        """
        Send one email.

        Raises:
            ExternalServiceError: EMAIL_SEND_FAILED after retries are exhausted
        """
        try:
            await self._send_with_retry(self._message(to, content))
        except (smtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            logger.error("Failed to send email to %s: %s", to, e)
            raise ExternalServiceError(
                "Failed to send email. Please try again.",
                ErrorCode.EMAIL_SEND_FAILED,
                service="email",
            ) from e
        logger.info("Email sent to %s: %s", to, content.subject)


def build_mailer(settings: Settings) -> ConsoleMailer | SmtpMailer:
    """Pick the email backend named by ``settings.email_backend``."""
    backend = settings.email_backend.lower()
    if backend == "console":
        return ConsoleMailer()
    if backend == "smtp":
        return SmtpMailer(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            sender=settings.email_from,
            use_tls=settings.smtp_use_tls,
            timeout_seconds=settings.email_timeout_seconds,
        )
    raise ValueError(f"Unknown email backend: {settings.email_backend}")
