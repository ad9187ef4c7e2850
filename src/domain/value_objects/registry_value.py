"""Registry data value objects: value types, values and key descriptions."""

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from src.core.exceptions import InvalidValueTypeError


class RegistryValueType(IntEnum):
    """Registry value kinds, numbered as the native registry numbers them."""

    UNKNOWN = -1
    NONE = 0
    STRING = 1
    EXPAND_STRING = 2
    BINARY = 3
    DWORD = 4
    MULTI_STRING = 7
    QWORD = 11

    @property
    def wire_name(self) -> str:
        return self.name.lower()

    @property
    def is_text(self) -> bool:
        return self in (RegistryValueType.STRING, RegistryValueType.EXPAND_STRING)

    @classmethod
    def from_name(cls, name: str) -> Optional["RegistryValueType"]:
        """Resolve ``string``, ``dword``, ``REG_SZ`` and similar spellings.

        Returns None for unknown names and for the NONE/UNKNOWN kinds, which
        cannot be written.
        """
        key = name.strip().lower().replace("-", "_")
        return _WRITABLE_NAMES.get(key)

    @classmethod
    def from_native(cls, code: int) -> "RegistryValueType":
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN


_WRITABLE_NAMES: Dict[str, RegistryValueType] = {
    "string": RegistryValueType.STRING,
    "reg_sz": RegistryValueType.STRING,
    "expand_string": RegistryValueType.EXPAND_STRING,
    "expandstring": RegistryValueType.EXPAND_STRING,
    "reg_expand_sz": RegistryValueType.EXPAND_STRING,
    "binary": RegistryValueType.BINARY,
    "reg_binary": RegistryValueType.BINARY,
    "dword": RegistryValueType.DWORD,
    "reg_dword": RegistryValueType.DWORD,
    "multi_string": RegistryValueType.MULTI_STRING,
    "multistring": RegistryValueType.MULTI_STRING,
    "reg_multi_sz": RegistryValueType.MULTI_STRING,
    "qword": RegistryValueType.QWORD,
    "reg_qword": RegistryValueType.QWORD,
}


def _utf16_size(text: str) -> int:
    return len(text.encode("utf-16-le"))


def decode_value_data(data: Any, value_type: RegistryValueType) -> Any:
    """Convert caller-supplied data into the Python shape of `value_type`.

    Text types take strings, DWORD and QWORD take integers or integer strings
    (decimal or ``0x`` hex), BINARY takes base64 text and MULTI_STRING takes a
    list of strings or newline separated text.

    Raises:
        InvalidValueTypeError: If the data cannot be converted.
    """
    if value_type.is_text:
        if isinstance(data, str):
            return data
    elif value_type in (RegistryValueType.DWORD, RegistryValueType.QWORD):
        if isinstance(data, int) and not isinstance(data, bool):
            return data
        if isinstance(data, str):
            try:
                return int(data.strip(), 0)
            except ValueError:
                pass
    elif value_type is RegistryValueType.BINARY:
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        if isinstance(data, str):
            try:
                return base64.b64decode(data, validate=True)
            except (binascii.Error, ValueError):
                pass
    elif value_type is RegistryValueType.MULTI_STRING:
        if isinstance(data, str):
            return data.split("\n") if data else []
        if isinstance(data, (list, tuple)) and all(isinstance(s, str) for s in data):
            return list(data)
    else:
        raise InvalidValueTypeError(f"Value type '{value_type.wire_name}' cannot be written")
    raise InvalidValueTypeError(f"Data does not match value type '{value_type.wire_name}'")


@dataclass(frozen=True)
class RegistryValue:
    """A named value read from or written to a registry key.

    Attributes:
        name: Value name; the empty string is the key's default value.
        data: Native Python data (str, int, bytes, list of str or None).
        value_type: Kind of the value.
        key_path: Normalized path of the key holding the value.
    """

    name: str
    data: Any
    value_type: RegistryValueType
    key_path: str = ""

    @property
    def size_bytes(self) -> int:
        """Approximate native storage size of the data."""
        if self.data is None:
            return 0
        if self.value_type is RegistryValueType.DWORD:
            return 4
        if self.value_type is RegistryValueType.QWORD:
            return 8
        if isinstance(self.data, (bytes, bytearray)):
            return len(self.data)
        if isinstance(self.data, str):
            return _utf16_size(self.data)
        if isinstance(self.data, (list, tuple)):
            return sum(_utf16_size(str(item)) for item in self.data)
        return _utf16_size(str(self.data))

    def data_as_string(self) -> str:
        """Render the data as text.

        Binary data is base64 encoded and multi-string entries are joined by
        newlines; everything else uses its plain string form.
        """
        if self.data is None:
            return ""
        if isinstance(self.data, (bytes, bytearray)):
            return base64.b64encode(bytes(self.data)).decode("ascii")
        if isinstance(self.data, (list, tuple)):
            return "\n".join(str(item) for item in self.data)
        return str(self.data)


@dataclass(frozen=True)
class RegistryKeyInfo:
    """Description of a registry key.

    Attributes:
        path: Normalized path of the key.
        name: Last segment of the path.
        subkey_count: Number of direct sub-keys.
        value_count: Number of values held by the key.
        last_write_time: When the key last changed, if the backend knows.
        subkey_names: Names of the direct sub-keys.
        value_names: Names of the values.
    """

    path: str
    name: str
    subkey_count: int
    value_count: int
    last_write_time: Optional[datetime] = None
    subkey_names: Tuple[str, ...] = field(default_factory=tuple)
    value_names: Tuple[str, ...] = field(default_factory=tuple)
