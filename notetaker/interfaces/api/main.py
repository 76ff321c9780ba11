"""
FastAPI Main Application - Unified API entry point.

Run with: uvicorn notetaker.interfaces.api.main:create_app --factory --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notetaker import __version__
from notetaker.config import Settings, configure_logging, get_settings

from .deps import build_services, cleanup_services, init_services
from .errors import register_exception_handlers
from .middleware import (
    ErrorHandlerMiddleware,
    LatencyMiddleware,
    RateLimitMiddleware,
    RequestIDMiddleware,
)
from .routes import auth, health, notes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    services = app.state.services
    settings = services.settings
    logger.info("Starting NoteTaker API...")
    logger.info("  Environment: %s", settings.environment)
    logger.info("  Database: %s", settings.db_path)
    logger.info("  Email backend: %s", settings.email_backend)

    await init_services(services)
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down NoteTaker API...")
    await cleanup_services(services)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="NoteTaker API",
        description="Personal notes with email one-time-code and Google sign-in",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.services = build_services(settings)

    # Add middleware (order matters - last added = outermost)
    # 1. Rate limiting (innermost of the custom layers, sees the request ID)
    app.add_middleware(RateLimitMiddleware)

    # 2. Error handling (catch exceptions from inner layers)
    app.add_middleware(ErrorHandlerMiddleware, expose_details=not settings.is_production)

    # 3. Latency tracking
    app.add_middleware(LatencyMiddleware)

    # 4. Request ID
    app.add_middleware(RequestIDMiddleware)

    # 5. CORS (credentials are needed for the session cookies)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix="/auth", tags=["Auth"])
    app.include_router(notes.router, prefix="/notes", tags=["Notes"])

    return app
