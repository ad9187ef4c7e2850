"""Native Windows registry backend built on the standard `winreg` module.

Only constructible on Windows. Keys are opened with the narrowest access mask
each primitive needs and closed as soon as the primitive returns.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from src.core.exceptions import KeyNotFoundError, LimitExceededError, ValueNotFoundError
from src.domain.value_objects.registry_limits import RegistryLimits
from src.domain.value_objects.registry_path import RegistryHive, RegistryPath
from src.domain.value_objects.registry_value import (
    RegistryKeyInfo,
    RegistryValue,
    RegistryValueType,
)
from src.domain.value_objects.request_context import CancellationToken
from src.infrastructure.registry.base import BaseRegistryService

_FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)


def filetime_to_datetime(filetime: int) -> Optional[datetime]:
    """Convert a Windows FILETIME (100 ns ticks since 1601) to a UTC datetime."""
    if not filetime:
        return None
    return _FILETIME_EPOCH + timedelta(microseconds=filetime // 10)


class WindowsRegistryService(BaseRegistryService):
    """Registry backend over the host's native registry."""

    backend_name = "windows"

    def __init__(self, limits: Optional[RegistryLimits] = None):
        try:
            import winreg
        except ImportError as e:
            raise RuntimeError("The native registry backend is only available on Windows") from e
        super().__init__(limits or RegistryLimits())
        self._winreg = winreg
        self._roots = {
            RegistryHive.HKEY_LOCAL_MACHINE: winreg.HKEY_LOCAL_MACHINE,
            RegistryHive.HKEY_CURRENT_USER: winreg.HKEY_CURRENT_USER,
            RegistryHive.HKEY_CLASSES_ROOT: winreg.HKEY_CLASSES_ROOT,
            RegistryHive.HKEY_USERS: winreg.HKEY_USERS,
            RegistryHive.HKEY_CURRENT_CONFIG: winreg.HKEY_CURRENT_CONFIG,
        }

    def _open(self, path: RegistryPath, access: int):
        try:
            return self._winreg.OpenKey(self._roots[path.hive], path.subkey, 0, access)
        except FileNotFoundError:
            raise KeyNotFoundError(path.normalize()) from None

    def _key_exists(self, path: RegistryPath) -> bool:
        try:
            with self._open(path, self._winreg.KEY_READ):
                return True
        except KeyNotFoundError:
            return False

    def _read_value(self, path: RegistryPath, name: str) -> RegistryValue:
        with self._open(path, self._winreg.KEY_QUERY_VALUE) as key:
            try:
                data, native_type = self._winreg.QueryValueEx(key, name)
            except FileNotFoundError:
                raise ValueNotFoundError(path.normalize(), name) from None
        return RegistryValue(name, data, RegistryValueType.from_native(native_type), path.normalize())

    def _write_value(
        self, path: RegistryPath, name: str, data: Any, value_type: RegistryValueType
    ) -> None:
        root = self._roots[path.hive]
        with self._winreg.CreateKeyEx(root, path.subkey, 0, self._winreg.KEY_SET_VALUE) as key:
            payload = list(data) if value_type is RegistryValueType.MULTI_STRING else data
            self._winreg.SetValueEx(key, name, 0, int(value_type), payload)

    def _delete_value(self, path: RegistryPath, name: str) -> None:
        with self._open(path, self._winreg.KEY_SET_VALUE) as key:
            try:
                self._winreg.DeleteValue(key, name)
            except FileNotFoundError:
                raise ValueNotFoundError(path.normalize(), name) from None

    def _list_subkeys(self, path: RegistryPath) -> List[str]:
        with self._open(path, self._winreg.KEY_READ) as key:
            subkey_count, _, _ = self._winreg.QueryInfoKey(key)
            return [self._winreg.EnumKey(key, i) for i in range(subkey_count)]

    def _list_values(self, path: RegistryPath, maximum: int) -> List[RegistryValue]:
        normalized = path.normalize()
        with self._open(path, self._winreg.KEY_READ) as key:
            _, value_count, _ = self._winreg.QueryInfoKey(key)
            if value_count > maximum:
                raise LimitExceededError("value_count", value_count, maximum)
            values = []
            for i in range(value_count):
                name, data, native_type = self._winreg.EnumValue(key, i)
                values.append(
                    RegistryValue(name, data, RegistryValueType.from_native(native_type), normalized)
                )
            return values

    def _describe_key(self, path: RegistryPath) -> RegistryKeyInfo:
        with self._open(path, self._winreg.KEY_READ) as key:
            subkey_count, value_count, modified = self._winreg.QueryInfoKey(key)
            subkeys = tuple(self._winreg.EnumKey(key, i) for i in range(subkey_count))
            values = tuple(self._winreg.EnumValue(key, i)[0] for i in range(value_count))
        return RegistryKeyInfo(
            path=path.normalize(),
            name=path.name,
            subkey_count=subkey_count,
            value_count=value_count,
            last_write_time=filetime_to_datetime(modified),
            subkey_names=subkeys,
            value_names=values,
        )

    def _delete_tree(self, path: RegistryPath, token: CancellationToken) -> None:
        # winreg.DeleteKey refuses keys that still have children
        token.raise_if_cancelled()
        for name in self._list_subkeys(path):
            self._delete_tree(path.child(name), token)
        try:
            self._winreg.DeleteKey(self._roots[path.hive], path.subkey)
        except FileNotFoundError:
            raise KeyNotFoundError(path.normalize()) from None
