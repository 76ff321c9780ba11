"""
API Dependencies - Dependency injection for FastAPI routes.

All services are built once per application by ``build_services`` and
stored on ``app.state.services``; routes reach them through the getters
below.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from fastapi import Request

from notetaker.adapters.email import build_mailer
from notetaker.adapters.google import GoogleIdentityVerifier
from notetaker.adapters.sqlite import Database, SQLiteNoteStore, SQLiteUserStore
from notetaker.config import RateLimitError, Settings
from notetaker.domains.auth import AuthOrchestrator, OTPPolicy
from notetaker.domains.notes import NotesService
from notetaker.domains.ratelimit import (
    InMemoryCounterStore,
    RateLimitTier,
    SlidingWindowRateLimiter,
    tiers_from_settings,
)
from notetaker.domains.sessions import TokenService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler may need, wired together."""

    settings: Settings
    db: Database
    auth: AuthOrchestrator
    notes: NotesService
    tiers: dict[str, RateLimitTier]
    limiters: dict[str, SlidingWindowRateLimiter]
    background: list[asyncio.Task] = field(default_factory=list)


def build_services(settings: Settings) -> Services:
    """Construct the service graph without touching the database yet."""
    db = Database(settings.db_path)
    users = SQLiteUserStore(db)
    auth = AuthOrchestrator(
        users=users,
        tokens=TokenService.from_settings(settings),
        verifier=GoogleIdentityVerifier.from_settings(settings),
        mailer=build_mailer(settings),
        policy=OTPPolicy.from_settings(settings),
    )
    tiers = tiers_from_settings(settings)
    counters = InMemoryCounterStore()
    return Services(
        settings=settings,
        db=db,
        auth=auth,
        notes=NotesService(SQLiteNoteStore(db)),
        tiers=tiers,
        limiters={name: SlidingWindowRateLimiter.for_tier(counters, tier) for name, tier in tiers.items()},
    )


async def _every(seconds: float, job: Callable[[], Awaitable[object]], name: str) -> None:
    while True:
        await asyncio.sleep(seconds)
        try:
            await job()
        except Exception:
            logger.exception("Background job %s failed", name)


async def purge_expired(services: Services) -> None:
    """Clear expired OTPs and forget idle rate-limit keys."""
    cleared = await services.auth.purge_expired_otps()
    for limiter in services.limiters.values():
        await limiter.purge()
    if cleared:
        logger.info("Cleared %d expired OTPs", cleared)


async def init_services(services: Services) -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    await services.db.initialize()
    interval = services.settings.otp_sweep_interval_seconds
    if interval > 0:
        services.background.append(
            asyncio.create_task(_every(interval, lambda: purge_expired(services), "otp-sweep"))
        )


async def cleanup_services(services: Services) -> None:
    """Cleanup services on shutdown."""
    for task in services.background:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    services.background.clear()
    await services.db.close()


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_auth(request: Request) -> AuthOrchestrator:
    return get_services(request).auth


def get_notes(request: Request) -> NotesService:
    return get_services(request).notes


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit(tier_name: str) -> Callable[[Request], Awaitable[None]]:
    """
    Build a route dependency enforcing one rate-limit tier.

    Hits are keyed by tier, client IP and (when the body carries one) email.
    """

    async def dependency(request: Request) -> None:
        services = get_services(request)
        tier = services.tiers[tier_name]
        email = ""
        if request.method == "POST":
            try:
                body = await request.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("email"), str):
                email = body["email"].strip().lower()

        key = f"{tier.name}:{client_ip(request)}:{email}"
        decision = await services.limiters[tier_name].hit(key)
        if not decision.allowed:
            logger.warning("Rate limit %s exceeded for %s", tier.name, key)
            raise RateLimitError(tier.message, tier.code, retry_after=decision.retry_after)

    return dependency
