"""Application factory for the registry access service.

`create_application` assembles the FastAPI app: the rate limiter, the
correlation and rate-limit middleware, the exception handlers that turn
domain errors into uniform JSON bodies, and the v1 routers. The registry
components themselves are built by the lifespan, or placed on
``app.state.registry_components`` beforehand by tests.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.adapters.api.v1 import api_router
from src.core.config.settings import settings
from src.core.handlers import register_exception_handlers
from src.core.lifecycle import create_lifespan_manager
from src.core.middleware import configure_middleware
from src.core.ratelimiter import get_limiter

OPENAPI_TAGS = [
    {"name": "registry values", "description": "Read, write, delete and list values of a key."},
    {"name": "registry keys", "description": "Enumerate, describe, delete and probe keys; search COM classes."},
    {"name": "health", "description": "Liveness and a summary of the policy in force."},
    {"name": "metrics", "description": "Operation and denial metrics (debug mode only)."},
    {"name": "guides", "description": "Guidance on safe queries and error codes."},
]


def create_application() -> FastAPI:
    """Create and configure the FastAPI application.

    Interactive documentation is only served in debug mode.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Policy-gated access to the Windows Registry.",
        openapi_tags=OPENAPI_TAGS,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=create_lifespan_manager(),
        default_response_class=JSONResponse,
    )

    # One limiter per application; SlowAPIMiddleware reads it from the state
    app.state.limiter = get_limiter()

    configure_middleware(app)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api/v1")

    return app
