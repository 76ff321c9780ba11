"""
NoteTaker - Note-taking service with email/OTP and Google sign-in.

Example:
    >>> from notetaker.interfaces.api import create_app
    >>> app = create_app()
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
