from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from src.domain.services.registry.registry_operations_service import RegistryOperationsService
from src.domain.value_objects.request_context import RequestContext
from src.infrastructure.dependency_injection.registry_dependencies import (
    RegistryComponents,
    build_registry_components,
)
from src.utils.correlation import new_correlation_id

__all__ = [
    "get_registry_components",
    "get_registry_operations",
    "get_request_context",
]


# ---------------------------------------------------------------------------
# Public dependencies
# ---------------------------------------------------------------------------


def get_registry_components(request: Request) -> RegistryComponents:
    """Return the components built at startup.

    The lifespan normally builds them; when it has not run (e.g. a test client
    used without a context manager) they are built on first use.
    """
    components = getattr(request.app.state, "registry_components", None)
    if components is None:
        components = build_registry_components()
        request.app.state.registry_components = components
    return components


Components = Annotated[RegistryComponents, Depends(get_registry_components)]


def get_registry_operations(components: Components) -> RegistryOperationsService:
    return components.operations


def get_request_context(request: Request, components: Components) -> RequestContext:
    """Build a fresh `RequestContext` for the current request.

    The correlation id comes from the correlation middleware; the caller tier
    is the one configured for the process.
    """
    correlation_id = getattr(request.state, "correlation_id", None) or new_correlation_id()
    return RequestContext(correlation_id=correlation_id, caller_tier=components.caller_tier)
