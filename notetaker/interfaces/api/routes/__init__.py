"""
API Routes.
"""

from . import auth, health, notes

__all__ = ["health", "auth", "notes"]
