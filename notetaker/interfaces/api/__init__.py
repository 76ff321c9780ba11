"""
API Interface - FastAPI REST API for accounts, sessions and notes.
"""

from .main import create_app

__all__ = ["create_app"]
