"""Domain Interfaces for dependency inversion.

These interfaces define the contracts between the authorization engine, the
operations layer and the registry backends.

Interface Organization:
- Authorization: pure decisions over path, operation and caller tier
- Registry: the gated read/write/delete/enumerate/describe operations
"""

from .authorization import IAuthorizationService
from .registry import IRegistryService

__all__ = [
    "IAuthorizationService",
    "IRegistryService",
]
