"""
Error responses - Map exceptions to the JSON error shape.

    {"success": false, "error": {"code", "message", "details"}, "request_id": "..."}
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notetaker.config.errors import (
    ErrorCode,
    ExternalServiceError,
    NoteTakerError,
    RateLimitError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.AUTH_REQUIRED,
    403: ErrorCode.ACCESS_DENIED,
    404: ErrorCode.ROUTE_NOT_FOUND,
}


def error_response(request: Request, error: NoteTakerError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    status = error.status_code
    log = logger.error if status >= 500 else logger.info
    log(
        "%s: %s request_id=%s details=%s",
        error.code.value,
        error.message,
        request_id,
        error.details,
    )

    headers = {}
    if isinstance(error, (RateLimitError, ExternalServiceError)):
        headers["Retry-After"] = str(error.retry_after)

    return JSONResponse(
        status_code=status,
        content={"success": False, "error": error.to_dict(), "request_id": request_id},
        headers=headers,
    )


async def _handle_app_error(request: Request, exc: NoteTakerError) -> JSONResponse:
    return error_response(request, exc)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return error_response(request, ValidationError("Validation failed", details={"errors": fields}))


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = f"Route {request.method} {request.url.path} not found"
    else:
        message = str(exc.detail)
    fallback = ErrorCode.INTERNAL_ERROR if exc.status_code >= 500 else ErrorCode.VALIDATION_ERROR
    error = NoteTakerError(_STATUS_CODES.get(exc.status_code, fallback), message)
    error.status_code = exc.status_code
    return error_response(request, error)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NoteTakerError, _handle_app_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
