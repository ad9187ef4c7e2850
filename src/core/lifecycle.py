"""Application lifecycle management.

This module handles application startup and shutdown events, building the
registry access components once and logging the lifecycle transitions.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.core.config.settings import settings
from src.core.logging import logger
from src.infrastructure.dependency_injection.registry_dependencies import build_registry_components


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager that handles startup and shutdown events.

        On startup the policy is loaded and the authorization engine, registry
        backend and operations service are built, unless components were
        already placed on the application state (as tests do).

        Args:
            app (FastAPI): The FastAPI application instance
        """
        # Startup
        if getattr(app.state, "registry_components", None) is None:
            app.state.registry_components = build_registry_components()
        components = app.state.registry_components
        logger.info(
            "application_startup",
            env=settings.APP_ENV,
            version=settings.VERSION,
            caller_tier=components.caller_tier.name,
            policy_source=components.policy.source,
            backend=components.backend_name,
        )

        yield

        # Shutdown
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
