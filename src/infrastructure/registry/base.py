"""Shared machinery for registry backends.

Backends only implement small blocking primitives (open, list, read, write,
delete). `BaseRegistryService` turns them into the async `IRegistryService`
contract: it runs each primitive in a worker thread under the configured
time budget, checks the request's cancellation token between native calls,
enforces size and count limits and walks sub-keys for enumeration.
"""

import asyncio
from abc import abstractmethod
from typing import Any, Callable, List, Optional, TypeVar

import structlog

from src.core.exceptions import (
    InvalidPathError,
    InvalidValueTypeError,
    KeyNotFoundError,
    LimitExceededError,
    OperationTimeoutError,
    ValueNotFoundError,
)
from src.domain.interfaces.registry import IRegistryService
from src.domain.value_objects.operation_results import ClsidSearchResult
from src.domain.value_objects.registry_limits import RegistryLimits
from src.domain.value_objects.registry_path import SEPARATOR, RegistryPath, fold_case
from src.domain.value_objects.registry_value import (
    RegistryKeyInfo,
    RegistryValue,
    RegistryValueType,
)
from src.domain.value_objects.request_context import CancellationToken, RequestContext

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DWORD_MAX = 0xFFFFFFFF
QWORD_MAX = 0xFFFFFFFFFFFFFFFF

INPROC_SERVER_KEY = "InprocServer32"


class BaseRegistryService(IRegistryService):
    """Async registry service built on blocking backend primitives."""

    backend_name = "base"

    def __init__(self, limits: RegistryLimits):
        self._limits = limits

    @property
    def limits(self) -> RegistryLimits:
        return self._limits

    # ------------------------------------------------------------------
    # Backend primitives (blocking, run in a worker thread)
    # ------------------------------------------------------------------

    @abstractmethod
    def _key_exists(self, path: RegistryPath) -> bool:
        pass

    @abstractmethod
    def _read_value(self, path: RegistryPath, name: str) -> RegistryValue:
        pass

    @abstractmethod
    def _write_value(
        self, path: RegistryPath, name: str, data: Any, value_type: RegistryValueType
    ) -> None:
        pass

    @abstractmethod
    def _delete_value(self, path: RegistryPath, name: str) -> None:
        pass

    @abstractmethod
    def _list_subkeys(self, path: RegistryPath) -> List[str]:
        """Names of the direct sub-keys; raises KeyNotFoundError for a missing key."""
        pass

    @abstractmethod
    def _list_values(self, path: RegistryPath, maximum: int) -> List[RegistryValue]:
        """Values of the key.

        Raises LimitExceededError before reading any data when the key holds
        more than `maximum` values.
        """
        pass

    @abstractmethod
    def _describe_key(self, path: RegistryPath) -> RegistryKeyInfo:
        pass

    @abstractmethod
    def _delete_tree(self, path: RegistryPath, token: CancellationToken) -> None:
        pass

    # ------------------------------------------------------------------
    # IRegistryService
    # ------------------------------------------------------------------

    async def read_value(
        self, path: RegistryPath, name: str, context: RequestContext
    ) -> RegistryValue:
        value = await self._run("read_value", context, self._read_value, path, name)
        self._check_value_size(value)
        return value

    async def write_value(
        self,
        path: RegistryPath,
        name: str,
        data: Any,
        value_type: RegistryValueType,
        context: RequestContext,
    ) -> None:
        self._check_payload(data, value_type)
        self._check_value_size(RegistryValue(name, data, value_type, path.normalize()))
        await self._run("write_value", context, self._write_value, path, name, data, value_type)

    async def delete_value(self, path: RegistryPath, name: str, context: RequestContext) -> None:
        await self._run("delete_value", context, self._delete_value, path, name)

    async def enumerate_keys(
        self, path: RegistryPath, depth: int, context: RequestContext
    ) -> List[str]:
        return await self._run("enumerate_keys", context, self._walk, path, depth, context.cancellation)

    async def enumerate_values(
        self, path: RegistryPath, context: RequestContext
    ) -> List[RegistryValue]:
        return await self._run(
            "enumerate_values", context, self._list_values, path, self._limits.max_values_per_query
        )

    async def get_key_info(self, path: RegistryPath, context: RequestContext) -> RegistryKeyInfo:
        return await self._run("get_key_info", context, self._describe_key, path)

    async def delete_key(self, path: RegistryPath, context: RequestContext) -> None:
        if not path.subkey:
            raise InvalidPathError(f"Cannot delete hive root {path.hive.value}")
        await self._run("delete_key", context, self._delete_tree, path, context.cancellation)

    async def key_exists(self, path: RegistryPath, context: RequestContext) -> bool:
        return await self._run("key_exists", context, self._key_exists, path)

    async def find_inproc_servers(
        self,
        root: RegistryPath,
        dll_filter: Optional[str],
        limit: int,
        context: RequestContext,
    ) -> List[ClsidSearchResult]:
        return await self._run(
            "search_clsid",
            context,
            self._scan_inproc_servers,
            root,
            dll_filter,
            limit,
            context.cancellation,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _run(
        self, operation: str, context: RequestContext, func: Callable[..., T], *args: Any
    ) -> T:
        context.cancellation.raise_if_cancelled()
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args),
                timeout=self._limits.operation_timeout_seconds,
            )
        except asyncio.TimeoutError:
            context.cancellation.cancel()
            logger.warning(
                "registry_operation_timeout",
                correlation_id=context.correlation_id,
                operation=operation,
                backend=self.backend_name,
                timeout_ms=self._limits.operation_timeout_ms,
            )
            raise OperationTimeoutError(operation, self._limits.operation_timeout_ms)

    def _walk(self, root: RegistryPath, depth: int, token: CancellationToken) -> List[str]:
        """Depth-first listing of sub-keys below `root`, as relative paths."""
        results: List[str] = []
        maximum = self._limits.max_values_per_query

        def visit(path: RegistryPath, prefix: str, level: int, must_exist: bool) -> None:
            token.raise_if_cancelled()
            try:
                names = self._list_subkeys(path)
            except KeyNotFoundError:
                if must_exist:
                    raise
                # removed while walking
                return
            for name in names:
                relative = f"{prefix}{SEPARATOR}{name}" if prefix else name
                results.append(relative)
                if len(results) > maximum:
                    raise LimitExceededError("key_count", len(results), maximum)
                if level < depth:
                    visit(path.child(name), relative, level + 1, False)

        visit(root, "", 1, True)
        return results

    def _scan_inproc_servers(
        self,
        root: RegistryPath,
        dll_filter: Optional[str],
        limit: int,
        token: CancellationToken,
    ) -> List[ClsidSearchResult]:
        needle = fold_case(dll_filter) if dll_filter else None
        found: List[ClsidSearchResult] = []
        for clsid in self._list_subkeys(root):
            token.raise_if_cancelled()
            server = root.child(clsid).child(INPROC_SERVER_KEY)
            try:
                value = self._read_value(server, "")
            except (KeyNotFoundError, ValueNotFoundError, PermissionError):
                continue
            if not value.value_type.is_text or not value.data:
                continue
            if needle is not None and needle not in fold_case(value.data):
                continue
            found.append(ClsidSearchResult(clsid, value.data, server.normalize()))
            if len(found) >= limit:
                break
        return found

    def _check_value_size(self, value: RegistryValue) -> None:
        size = value.size_bytes
        if size > self._limits.max_value_size_bytes:
            raise LimitExceededError("value_size", size, self._limits.max_value_size_bytes)

    @staticmethod
    def _check_payload(data: Any, value_type: RegistryValueType) -> None:
        """Validate that `data` has the Python shape the value type needs."""
        if value_type.is_text:
            ok = isinstance(data, str)
        elif value_type is RegistryValueType.DWORD:
            ok = isinstance(data, int) and not isinstance(data, bool) and 0 <= data <= DWORD_MAX
        elif value_type is RegistryValueType.QWORD:
            ok = isinstance(data, int) and not isinstance(data, bool) and 0 <= data <= QWORD_MAX
        elif value_type is RegistryValueType.BINARY:
            ok = isinstance(data, (bytes, bytearray))
        elif value_type is RegistryValueType.MULTI_STRING:
            ok = isinstance(data, (list, tuple)) and all(isinstance(s, str) for s in data)
        else:
            raise InvalidValueTypeError(f"Value type '{value_type.wire_name}' cannot be written")
        if not ok:
            raise InvalidValueTypeError(
                f"Data does not match value type '{value_type.wire_name}'"
            )
