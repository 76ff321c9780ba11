"""
CLI Interface - Command-line tools for NoteTaker.

Provides commands for:
- Running the API server
- Database setup
- Expired OTP cleanup and account lookup
"""

from .main import app, main

__all__ = ["app", "main"]
