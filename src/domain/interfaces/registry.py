"""Registry service interface.

The registry service performs the actual reads and writes. It is only ever
called after the authorization engine has permitted the operation, and it
receives the engine's effective depth rather than the caller's request.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from src.domain.value_objects.operation_results import ClsidSearchResult
from src.domain.value_objects.registry_path import RegistryPath
from src.domain.value_objects.registry_value import (
    RegistryKeyInfo,
    RegistryValue,
    RegistryValueType,
)
from src.domain.value_objects.request_context import RequestContext


class IRegistryService(ABC):
    """Interface for registry backends."""

    @abstractmethod
    async def read_value(
        self, path: RegistryPath, name: str, context: RequestContext
    ) -> RegistryValue:
        """Read one named value.

        Args:
            path: Key holding the value
            name: Value name ("" for the default value)
            context: Request context

        Returns:
            RegistryValue: The value and its type

        Raises:
            KeyNotFoundError: If the key does not exist
            ValueNotFoundError: If the value does not exist
            LimitExceededError: If the value is larger than allowed
        """
        pass

    @abstractmethod
    async def write_value(
        self,
        path: RegistryPath,
        name: str,
        data: Any,
        value_type: RegistryValueType,
        context: RequestContext,
    ) -> None:
        """Create or overwrite a named value, creating the key when missing.

        Raises:
            LimitExceededError: If the payload is larger than allowed
            InvalidValueTypeError: If the type cannot be written
        """
        pass

    @abstractmethod
    async def delete_value(self, path: RegistryPath, name: str, context: RequestContext) -> None:
        """Delete one named value.

        Raises:
            KeyNotFoundError: If the key does not exist
            ValueNotFoundError: If the value does not exist
        """
        pass

    @abstractmethod
    async def enumerate_keys(
        self, path: RegistryPath, depth: int, context: RequestContext
    ) -> List[str]:
        """List sub-keys of `path`, depth first, up to `depth` levels.

        Args:
            path: Key to start from
            depth: Number of levels to descend (1 lists direct children)
            context: Request context

        Returns:
            List[str]: Sub-key paths relative to `path`

        Raises:
            KeyNotFoundError: If the key does not exist
            LimitExceededError: If more keys exist than one query may return
        """
        pass

    @abstractmethod
    async def enumerate_values(
        self, path: RegistryPath, context: RequestContext
    ) -> List[RegistryValue]:
        """List every value held by a key.

        Raises:
            KeyNotFoundError: If the key does not exist
            LimitExceededError: If the key holds more values than allowed
        """
        pass

    @abstractmethod
    async def get_key_info(self, path: RegistryPath, context: RequestContext) -> RegistryKeyInfo:
        """Describe a key: sub-key and value counts and names.

        Raises:
            KeyNotFoundError: If the key does not exist
        """
        pass

    @abstractmethod
    async def delete_key(self, path: RegistryPath, context: RequestContext) -> None:
        """Delete a key together with its whole subtree.

        Raises:
            KeyNotFoundError: If the key does not exist
        """
        pass

    @abstractmethod
    async def key_exists(self, path: RegistryPath, context: RequestContext) -> bool:
        """Return True if the key exists."""
        pass

    @abstractmethod
    async def find_inproc_servers(
        self,
        root: RegistryPath,
        dll_filter: Optional[str],
        limit: int,
        context: RequestContext,
    ) -> List[ClsidSearchResult]:
        """Find COM classes below `root` registered with an in-process server.

        Args:
            root: The CLSID key to scan
            dll_filter: Case-insensitive fragment the server path must contain,
                or None to accept every server
            limit: Stop after this many matches
            context: Request context

        Returns:
            List[ClsidSearchResult]: Matches in the order the sub-keys are listed

        Raises:
            KeyNotFoundError: If `root` does not exist
        """
        pass
