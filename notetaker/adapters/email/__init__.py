"""Transactional email delivery."""

from .sender import ConsoleMailer, SmtpMailer, build_mailer
from .templates import EmailContent, otp_email, welcome_email

__all__ = [
    "ConsoleMailer",
    "SmtpMailer",
    "build_mailer",
    "EmailContent",
    "otp_email",
    "welcome_email",
]
