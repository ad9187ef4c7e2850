"""Domain Services for the registry access domain.

Authorization Services:
- Path Authorization: pure allow/deny decisions over registry paths

Registry Services:
- Registry Operations: caller-facing orchestration of parse, authorize,
  execute, measure and log
"""

from .authorization.path_authorization_service import PathAuthorizationService
from .registry.registry_operations_service import RegistryOperationsService

__all__ = [
    "PathAuthorizationService",
    "RegistryOperationsService",
]
