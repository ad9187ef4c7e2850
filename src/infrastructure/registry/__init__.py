"""Registry backends."""

from .base import BaseRegistryService
from .memory_registry import InMemoryRegistryService
from .windows_registry import WindowsRegistryService

__all__ = [
    "BaseRegistryService",
    "InMemoryRegistryService",
    "WindowsRegistryService",
]
