"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from notetaker import __version__

from ..deps import Services, get_services

router = APIRouter()


@router.get("/health")
async def health_check(services: Services = Depends(get_services)) -> dict[str, Any]:
    """Health check endpoint."""
    return {
        "success": True,
        "status": "healthy",
        "service": "notetaker",
        "environment": services.settings.environment,
    }


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "Note Taking App API",
        "version": __version__,
        "description": "Notes with email/OTP and Google sign-in",
        "docs": "/docs",
        "endpoints": {"auth": "/auth", "notes": "/notes"},
    }
