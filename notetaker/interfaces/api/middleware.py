"""
API Middleware - Request/response processing.

Provides:
- Request ID tracking
- Response latency measurement
- Last-resort error handling (500 with taxonomy code)
- General per-IP rate limiting
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from notetaker.config.errors import ErrorCode, NoteTakerError, RateLimitError

from .errors import error_response

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health"}


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach request ID for tracing across logs and responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        # Store in request state for access in handlers
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class LatencyMiddleware(BaseHTTPMiddleware):
    """Track and log request latency."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        request_id = getattr(request.state, "request_id", "unknown")
        logger.info(
            "%s %s status=%d latency_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )

        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Render anything the route exception handlers did not catch.

    Outside production the exception text is returned to help debugging.
    """

    def __init__(self, app: ASGIApp, expose_details: bool = False) -> None:
        super().__init__(app)
        self.expose_details = expose_details

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except NoteTakerError as e:
            return error_response(request, e)
        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.exception("Unhandled error: %s request_id=%s", str(e), request_id)
            details = {"error": str(e)} if self.expose_details else {}
            return error_response(
                request,
                NoteTakerError(ErrorCode.INTERNAL_ERROR, "Server unavailable", details),
            )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """General per-IP request limit, using the ``general`` tier limiter."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # Skip rate limiting for health checks
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        services = request.app.state.services
        tier = services.tiers["general"]
        client_ip = request.client.host if request.client else "unknown"

        decision = await services.limiters["general"].hit(f"{tier.name}:{client_ip}")
        if not decision.allowed:
            logger.warning("Rate limit exceeded for %s", client_ip)
            return error_response(
                request,
                RateLimitError(tier.message, tier.code, retry_after=decision.retry_after),
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)

        return response
