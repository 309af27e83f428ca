"""
Error taxonomy shared by the services and the HTTP layer.

Every error raised on purpose by the relay derives from ``RelayError`` and
knows the HTTP status it should surface with. ``register_exception_handlers``
wires them into FastAPI so routes can simply let them propagate.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base class for errors rendered as JSON error bodies."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(RelayError):
    """Raised when a request is missing required fields or is a duplicate."""

    status_code = HTTPStatus.BAD_REQUEST


class NotRegisteredError(RelayError):
    """Raised when a chat user has no registration or no linked person id."""

    status_code = HTTPStatus.BAD_REQUEST


class NoActiveSessionError(RelayError):
    """Raised when clocking out without an open time entry."""

    status_code = HTTPStatus.CONFLICT


class AuthError(RelayError):
    """Raised when an access token cannot be acquired from Jibble."""

    def __init__(self, message: str, *, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class UpstreamError(RelayError):
    """Raised when a Jibble call fails or returns something unusable."""

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.payload = payload


class UpstreamAuthError(UpstreamError):
    """Jibble rejected the bearer token (401/403)."""


async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    if exc.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body: dict[str, Any] = {"success": False, "error": exc.message}
    payload = getattr(exc, "payload", None)
    if payload is not None:
        body["upstream"] = payload
    return JSONResponse(status_code=exc.status_code, content=body)


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    missing = [
        ".".join(str(part) for part in error["loc"] if part != "body")
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=HTTPStatus.BAD_REQUEST,
        content={
            "success": False,
            "error": f"Invalid request: {', '.join(missing) or 'malformed body'}",
        },
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach JSON renderers for relay, validation and unexpected errors."""
    app.add_exception_handler(RelayError, _relay_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, _request_validation_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, _unhandled_error_handler)


__all__ = [
    "AuthError",
    "NoActiveSessionError",
    "NotRegisteredError",
    "RelayError",
    "UpstreamAuthError",
    "UpstreamError",
    "ValidationError",
    "register_exception_handlers",
]
