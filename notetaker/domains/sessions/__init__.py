"""
Sessions Domain - Signed access/refresh token pairs.
"""

from .models import AccessClaims, RefreshClaims, TokenPair
from .tokens import TokenService

__all__ = [
    "TokenService",
    "TokenPair",
    "AccessClaims",
    "RefreshClaims",
]
