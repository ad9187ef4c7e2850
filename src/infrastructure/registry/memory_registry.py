"""In-memory registry backend.

A case-insensitive, case-preserving key tree kept in process memory. It backs
the service on platforms without a native registry and in tests. Every hive
root exists from the start; other keys are created by writes or seeding.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.core.exceptions import KeyNotFoundError, LimitExceededError, ValueNotFoundError
from src.domain.value_objects.registry_limits import RegistryLimits
from src.domain.value_objects.registry_path import RegistryHive, RegistryPath, fold_case
from src.domain.value_objects.registry_value import (
    RegistryKeyInfo,
    RegistryValue,
    RegistryValueType,
)
from src.domain.value_objects.request_context import CancellationToken
from src.infrastructure.registry.base import BaseRegistryService


class _KeyNode:
    __slots__ = ("name", "children", "values", "last_write_time")

    def __init__(self, name: str):
        self.name = name
        self.children: Dict[str, "_KeyNode"] = {}
        self.values: Dict[str, Tuple[str, Any, RegistryValueType]] = {}
        self.last_write_time = datetime.now(timezone.utc)

    def touch(self) -> None:
        self.last_write_time = datetime.now(timezone.utc)


class InMemoryRegistryService(BaseRegistryService):
    """Registry backend over an in-process tree guarded by a lock."""

    backend_name = "memory"

    def __init__(self, limits: Optional[RegistryLimits] = None):
        super().__init__(limits or RegistryLimits())
        self._lock = threading.RLock()
        self._hives = {hive: _KeyNode(hive.value) for hive in RegistryHive}

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def create_key(self, path: RegistryPath) -> None:
        """Create `path` and any missing ancestors."""
        with self._lock:
            self._ensure(path)

    def set_value(
        self,
        path: RegistryPath,
        name: str,
        data: Any,
        value_type: RegistryValueType = RegistryValueType.STRING,
    ) -> None:
        """Store a value directly, bypassing limits. Intended for seeding."""
        self._write_value(path, name, data, value_type)

    def seed(self, entries: Mapping[str, Mapping[str, Tuple[Any, RegistryValueType]]]) -> None:
        """Bulk-create keys and values from ``{path: {name: (data, type)}}``."""
        for raw_path, values in entries.items():
            path = RegistryPath.parse(raw_path)
            self.create_key(path)
            for name, (data, value_type) in values.items():
                self.set_value(path, name, data, value_type)

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def _find(self, path: RegistryPath) -> Optional[_KeyNode]:
        node = self._hives[path.hive]
        for segment in path.segments:
            node = node.children.get(fold_case(segment))
            if node is None:
                return None
        return node

    def _require(self, path: RegistryPath) -> _KeyNode:
        node = self._find(path)
        if node is None:
            raise KeyNotFoundError(path.normalize())
        return node

    def _ensure(self, path: RegistryPath) -> _KeyNode:
        node = self._hives[path.hive]
        for segment in path.segments:
            child = node.children.get(fold_case(segment))
            if child is None:
                child = _KeyNode(segment)
                node.children[fold_case(segment)] = child
                node.touch()
            node = child
        return node

    def _key_exists(self, path: RegistryPath) -> bool:
        with self._lock:
            return self._find(path) is not None

    def _read_value(self, path: RegistryPath, name: str) -> RegistryValue:
        with self._lock:
            node = self._require(path)
            stored = node.values.get(fold_case(name))
            if stored is None:
                raise ValueNotFoundError(path.normalize(), name)
            stored_name, data, value_type = stored
            return RegistryValue(stored_name, _copy(data), value_type, path.normalize())

    def _write_value(
        self, path: RegistryPath, name: str, data: Any, value_type: RegistryValueType
    ) -> None:
        with self._lock:
            node = self._ensure(path)
            node.values[fold_case(name)] = (name, _copy(data), value_type)
            node.touch()

    def _delete_value(self, path: RegistryPath, name: str) -> None:
        with self._lock:
            node = self._require(path)
            if node.values.pop(fold_case(name), None) is None:
                raise ValueNotFoundError(path.normalize(), name)
            node.touch()

    def _list_subkeys(self, path: RegistryPath) -> List[str]:
        with self._lock:
            return [child.name for child in self._require(path).children.values()]

    def _list_values(self, path: RegistryPath, maximum: int) -> List[RegistryValue]:
        with self._lock:
            node = self._require(path)
            if len(node.values) > maximum:
                raise LimitExceededError("value_count", len(node.values), maximum)
            return [
                RegistryValue(name, _copy(data), value_type, path.normalize())
                for name, data, value_type in node.values.values()
            ]

    def _describe_key(self, path: RegistryPath) -> RegistryKeyInfo:
        with self._lock:
            node = self._require(path)
            subkeys = tuple(child.name for child in node.children.values())
            values = tuple(name for name, _, _ in node.values.values())
            return RegistryKeyInfo(
                path=path.normalize(),
                name=path.name,
                subkey_count=len(subkeys),
                value_count=len(values),
                last_write_time=node.last_write_time,
                subkey_names=subkeys,
                value_names=values,
            )

    def _delete_tree(self, path: RegistryPath, token: CancellationToken) -> None:
        token.raise_if_cancelled()
        with self._lock:
            self._require(path)
            parent = self._require(path.parent)
            del parent.children[fold_case(path.name)]
            parent.touch()


def _copy(data: Any) -> Any:
    if isinstance(data, bytearray):
        return bytes(data)
    if isinstance(data, (list, tuple)):
        return list(data)
    return data
