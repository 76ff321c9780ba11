"""
Email Templates - Subject, plain text and HTML bodies for auth emails.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

APP_NAME = "Note Taking App"

_LAYOUT = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>{title}</title></head>
<body style="font-family: 'Segoe UI', Tahoma, sans-serif; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #0ea5e9;">{app}</h2>
  {body}
  <p style="margin-top: 30px; font-size: 14px; color: #6b7280;">Best regards,<br>The {app} Team</p>
</body>
</html>
"""


@dataclass(frozen=True)
class EmailContent:
    subject: str
    text: str
    html: str


def otp_email(name: str, code: str, expiry_minutes: int) -> EmailContent:
    """Verification / sign-in code email."""
    text = (
        f"Hi {name},\n\n"
        f"Your {APP_NAME} verification code is: {code}\n"
        f"This code will expire in {expiry_minutes} minutes.\n\n"
        "If you didn't request this code, please ignore this email. "
        "Never share this code with anyone.\n"
    )
    body = (
        f"<p>Hi {escape(name)},</p>"
        "<p>Use the code below to verify your email address:</p>"
        '<p style="font-size: 32px; font-weight: bold; letter-spacing: 4px; color: #0ea5e9;">'
        f"{escape(code)}</p>"
        f"<p><small>This code will expire in {expiry_minutes} minutes.</small></p>"
        "<p><strong>Security notice:</strong> if you didn't request this code, ignore this email "
        "and never share the code with anyone.</p>"
    )
    return EmailContent(
        subject=f"Verify Your Email - {APP_NAME}",
        text=text,
        html=_LAYOUT.format(title="Email Verification", app=APP_NAME, body=body),
    )


def welcome_email(name: str) -> EmailContent:
    text = (
        f"Hi {name},\n\n"
        f"Welcome to {APP_NAME}! Your email has been verified and your account is ready.\n"
        "Start capturing your ideas, to-do lists and thoughts.\n"
    )
    body = (
        f"<p>Hi {escape(name)},</p>"
        f"<p>Welcome to {APP_NAME}! Your email has been verified and your account is ready.</p>"
        "<p>Start capturing your ideas, to-do lists and thoughts.</p>"
    )
    return EmailContent(
        subject=f"Welcome to {APP_NAME}!",
        text=text,
        html=_LAYOUT.format(title="Welcome", app=APP_NAME, body=body),
    )
