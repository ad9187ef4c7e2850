"""Middleware configuration for the FastAPI application.

This module handles the configuration and registration of all middleware
components: rate limiting and per-request correlation.
"""

import time

import structlog
from fastapi import FastAPI, Request
from slowapi.middleware import SlowAPIMiddleware

from src.core.metrics import metrics_collector
from src.utils.correlation import CORRELATION_HEADER, new_correlation_id


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application.

    The correlation middleware is registered last so it wraps everything
    else, including rate-limit rejections.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    # Rate limiting middleware
    app.add_middleware(SlowAPIMiddleware)

    # Correlation id middleware
    app.middleware("http")(correlation_id_middleware)


async def correlation_id_middleware(request: Request, call_next):
    """Middleware assigning a correlation id to every request.

    This middleware:
    1. Generates a fresh correlation id for the request
    2. Stores it on `request.state` and binds it into the structlog context
    3. Records request count and duration metrics
    4. Echoes the id in the `X-Correlation-ID` response header

    Args:
        request (Request): The incoming request
        call_next: The next middleware or route handler

    Returns:
        Response: The response with the correlation header
    """
    correlation_id = new_correlation_id()
    request.state.correlation_id = correlation_id
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("correlation_id")

    metrics_collector.record_request_metric(
        endpoint=request.url.path,
        method=request.method,
        status_code=response.status_code,
        duration=time.perf_counter() - start,
    )
    response.headers[CORRELATION_HEADER] = correlation_id
    return response
