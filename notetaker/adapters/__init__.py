"""
Adapters - External service integrations.

All storage, email and Google calls are wrapped here to isolate domains from third-party changes.
"""

from .email import ConsoleMailer, SmtpMailer, build_mailer
from .google import GoogleIdentityVerifier
from .sqlite import Database, SQLiteNoteStore, SQLiteUserStore

__all__ = [
    "Database",
    "SQLiteUserStore",
    "SQLiteNoteStore",
    "GoogleIdentityVerifier",
    "ConsoleMailer",
    "SmtpMailer",
    "build_mailer",
]
