from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

This module contains centralized handlers for the custom exceptions of the
service, translating them into HTTP responses. Every error body carries the
request's correlation id so callers can quote it when reporting problems.
Denials always produce the same body apart from the reason code; policy
details and native error text never reach the caller.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette import status
from structlog import get_logger

from src.core.exceptions import (
    ACCESS_NOT_PERMITTED,
    AccessDeniedError,
    LimitExceededError,
    OperationCancelledError,
    OperationTimeoutError,
    RegGuardError,
    ResourceNotFoundError,
    ValidationError,
    denial_reason_code,
)

__all__ = [
    "validation_error_handler",
    "access_denied_error_handler",
    "not_found_error_handler",
    "limit_exceeded_error_handler",
    "operation_timeout_error_handler",
    "operation_cancelled_error_handler",
    "rate_limit_exception_handler",
    "regguard_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


def _error_body(request: Request, exc: RegGuardError, **extra: Any) -> Dict[str, Any]:
    body = {
        "detail": exc.message,
        "code": exc.code,
        "correlation_id": getattr(request.state, "correlation_id", None),
    }
    body.update(extra)
    return body


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles `ValidationError`, returning a `400 Bad Request`.

    Malformed paths and unusable value types end up here. They are faults in
    the request, not authorization outcomes.

    Args:
        request: The incoming `Request` object.
        exc: The `ValidationError` instance.

    Returns:
        A `JSONResponse` with a 400 status code and error detail.
    """
    logger.info("request_validation_failed", error=exc.code, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, exc),
    )


async def access_denied_error_handler(request: Request, exc: AccessDeniedError) -> JSONResponse:
    """Handles `AccessDeniedError`, returning a `403 Forbidden`.

    The body is uniform for every denial: a fixed message, the
    `access_not_permitted` code, the reason code and the correlation id.

    Args:
        request: The incoming `Request` object.
        exc: The `AccessDeniedError` instance.

    Returns:
        A `JSONResponse` with a 403 status code.
    """
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={
            "detail": ACCESS_NOT_PERMITTED,
            "code": exc.code,
            "reason": denial_reason_code(exc.reason),
            "correlation_id": exc.correlation_id,
        },
    )


async def not_found_error_handler(request: Request, exc: ResourceNotFoundError) -> JSONResponse:
    """Handles missing keys and values, returning a `404 Not Found`."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(request, exc),
    )


async def limit_exceeded_error_handler(request: Request, exc: LimitExceededError) -> JSONResponse:
    """Handles `LimitExceededError`, returning a `422 Unprocessable Entity`.

    Args:
        request: The incoming `Request` object.
        exc: The `LimitExceededError` instance.

    Returns:
        A `JSONResponse` with a 422 status code, the limit hit and its maximum.
    """
    logger.warning(
        "registry_limit_exceeded",
        limit_type=exc.limit_type,
        requested=exc.requested,
        maximum=exc.maximum,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(request, exc, limit_type=exc.limit_type, maximum=exc.maximum),
    )


async def operation_timeout_error_handler(request: Request, exc: OperationTimeoutError) -> JSONResponse:
    """Handles `OperationTimeoutError`, returning a `504 Gateway Timeout`."""
    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        content=_error_body(request, exc),
    )


async def operation_cancelled_error_handler(
    request: Request, exc: OperationCancelledError
) -> JSONResponse:
    """Handles `OperationCancelledError`, returning a `503 Service Unavailable`."""
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(request, exc),
    )


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handles exceptions raised by slowapi when a rate limit is exceeded.

    Logs the event with the client address and the limit that was triggered
    and returns a `429 Too Many Requests` response.

    Args:
        request: The incoming FastAPI request.
        exc: The RateLimitExceeded exception instance.

    Returns:
        A JSONResponse with status code 429.
    """
    logger.warning(
        "rate_limit_exceeded",
        client_ip=request.client.host if request.client else None,
        path=request.url.path,
        limit=str(exc.limit.limit) if exc.limit is not None else None,
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "detail": "Too many requests",
            "code": "rate_limit_exceeded",
            "correlation_id": getattr(request.state, "correlation_id", None),
        },
    )


async def regguard_error_handler(request: Request, exc: RegGuardError) -> JSONResponse:
    """Handles the base `RegGuardError`, returning a `500 Internal Server Error`.

    This serves as a fallback for any custom errors that do not have a more
    specific handler.

    Args:
        request: The incoming `Request` object.
        exc: The `RegGuardError` instance.

    Returns:
        A `JSONResponse` with a 500 status code and a generic message.
    """
    logger.error(
        "An unhandled application error occurred",
        error_code=exc.code,
        error_message=exc.message,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An unexpected error occurred.",
            "code": "internal_error",
            "correlation_id": getattr(request.state, "correlation_id", None),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application.

    Handlers are looked up along the exception's MRO, so the base
    `RegGuardError` handler only catches what nothing more specific claims.

    Args:
        app: The `FastAPI` application instance.
    """
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(AccessDeniedError, access_denied_error_handler)
    app.add_exception_handler(ResourceNotFoundError, not_found_error_handler)
    app.add_exception_handler(LimitExceededError, limit_exceeded_error_handler)
    app.add_exception_handler(OperationTimeoutError, operation_timeout_error_handler)
    app.add_exception_handler(OperationCancelledError, operation_cancelled_error_handler)
    app.add_exception_handler(RegGuardError, regguard_error_handler)
