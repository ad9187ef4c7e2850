"""Composition of the registry access services.

This module builds the object graph once at startup: settings are turned into
limits and a caller tier, the policy file is loaded, and the authorization
engine, the registry backend and the operations service are wired together
through plain constructor injection. The result is kept on the application
state and handed to routes by the dependencies in `src.core.dependencies`.
"""

import sys
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from src.core.config.settings import settings as default_settings
from src.domain.interfaces.registry import IRegistryService
from src.domain.services.authorization.path_authorization_service import PathAuthorizationService
from src.domain.services.registry.registry_operations_service import RegistryOperationsService
from src.domain.value_objects.access_tier import AccessTier
from src.domain.value_objects.policy import PolicySet
from src.domain.value_objects.registry_limits import RegistryLimits
from src.infrastructure.configuration.policy_loader import PolicyConfigurationLoader
from src.infrastructure.registry.memory_registry import InMemoryRegistryService
from src.infrastructure.registry.windows_registry import WindowsRegistryService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RegistryComponents:
    """Everything a request needs, built once per process.

    Attributes:
        caller_tier: Tier granted to every caller of this process.
        limits: Resource limits in force.
        policy: The loaded access policy.
        authorization: The authorization engine.
        backend: The registry backend.
        operations: Caller-facing operations service.
    """

    caller_tier: AccessTier
    limits: RegistryLimits
    policy: PolicySet
    authorization: PathAuthorizationService
    backend: IRegistryService
    operations: RegistryOperationsService

    @property
    def backend_name(self) -> str:
        return getattr(self.backend, "backend_name", type(self.backend).__name__)


def resolve_caller_tier(level: Optional[str]) -> AccessTier:
    """Map AUTHORIZATION_LEVEL to a tier; unknown spellings become READ_ONLY.

    Args:
        level: Configured level name.

    Returns:
        AccessTier: The caller tier.
    """
    tier = AccessTier.from_name(level)
    if tier is None:
        logger.warning("unknown_authorization_level", level=level, fallback="READ_ONLY")
        return AccessTier.READ_ONLY
    return tier


def create_registry_backend(backend: str, limits: RegistryLimits) -> IRegistryService:
    """Instantiate the configured registry backend.

    Args:
        backend: "windows", "memory" or "auto" (native on Windows, memory elsewhere)
        limits: Resource limits for the backend

    Returns:
        IRegistryService: The backend

    Raises:
        RuntimeError: If "windows" is requested on another platform
    """
    if backend == "windows" or (backend == "auto" and sys.platform == "win32"):
        return WindowsRegistryService(limits)
    if backend == "auto":
        logger.warning("native_registry_unavailable", platform=sys.platform, backend="memory")
    return InMemoryRegistryService(limits)


def build_registry_components(
    settings: Any = None,
    backend: Optional[IRegistryService] = None,
    policy: Optional[PolicySet] = None,
) -> RegistryComponents:
    """Build the full service graph from settings.

    Args:
        settings: Settings object; the global settings when omitted
        backend: Backend to use instead of the configured one
        policy: Policy to use instead of loading ALLOWED_PATHS_FILE

    Returns:
        RegistryComponents: The wired components
    """
    settings = settings or default_settings
    limits = RegistryLimits.from_settings(settings)
    caller_tier = resolve_caller_tier(settings.AUTHORIZATION_LEVEL)
    if policy is None:
        policy = PolicyConfigurationLoader().load(settings.ALLOWED_PATHS_FILE)
    if backend is None:
        backend = create_registry_backend(settings.REGISTRY_BACKEND, limits)

    authorization = PathAuthorizationService(policy, limits.max_enumeration_depth)
    operations = RegistryOperationsService(authorization, backend)

    logger.info(
        "registry_components_built",
        caller_tier=caller_tier.name,
        policy_source=policy.source,
        backend=getattr(backend, "backend_name", type(backend).__name__),
    )
    return RegistryComponents(
        caller_tier=caller_tier,
        limits=limits,
        policy=policy,
        authorization=authorization,
        backend=backend,
        operations=operations,
    )
