"""Registry Path Value Object.

A registry path names a key inside one of the fixed hives of the Windows
Registry, e.g. ``HKEY_CURRENT_USER\\Software\\Vendor``. Paths arrive from
untrusted callers in many spellings (short hive aliases, forward slashes,
mixed case, stray separators), so every operation parses its input into this
value object first and works on the canonical form afterwards.

Comparison rules:
- Hive aliases resolve to one canonical hive name.
- Equality and hashing are case-insensitive on the normalized string, using a
  one-to-one per-character upper-case mapping (``fold_case``). Characters whose
  upper case expands, such as ``\u00df``, are compared as written, so
  ``Stra\u00dfe`` and ``STRASSE`` stay distinct keys.
- Containment is segment-aware: ``HKLM\\Soft`` does not contain
  ``HKLM\\Software``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from src.core.exceptions import InvalidPathError

SEPARATOR = "\\"


class RegistryHive(str, Enum):
    """The top-level roots of the registry."""

    HKEY_LOCAL_MACHINE = "HKEY_LOCAL_MACHINE"
    HKEY_CURRENT_USER = "HKEY_CURRENT_USER"
    HKEY_CLASSES_ROOT = "HKEY_CLASSES_ROOT"
    HKEY_USERS = "HKEY_USERS"
    HKEY_CURRENT_CONFIG = "HKEY_CURRENT_CONFIG"

    @property
    def short_name(self) -> str:
        """Conventional abbreviation, e.g. ``HKLM``."""
        return _SHORT_NAMES[self]

    @classmethod
    def from_token(cls, token: str) -> Optional["RegistryHive"]:
        """Resolve a hive name or alias, case-insensitively.

        Args:
            token: Hive name as written by the caller.

        Returns:
            Optional[RegistryHive]: The hive, or None when unrecognized.
        """
        return _HIVE_ALIASES.get(token.strip().upper())


_SHORT_NAMES: Dict[RegistryHive, str] = {
    RegistryHive.HKEY_LOCAL_MACHINE: "HKLM",
    RegistryHive.HKEY_CURRENT_USER: "HKCU",
    RegistryHive.HKEY_CLASSES_ROOT: "HKCR",
    RegistryHive.HKEY_USERS: "HKU",
    RegistryHive.HKEY_CURRENT_CONFIG: "HKCC",
}

_HIVE_ALIASES: Dict[str, RegistryHive] = {
    **{hive.value: hive for hive in RegistryHive},
    **{short: hive for hive, short in _SHORT_NAMES.items()},
}


def fold_case(text: str) -> str:
    """Upper-case `text` one character at a time.

    Characters whose upper case is more than one character (``\u00df`` becomes
    ``SS``, ``\ufb01`` becomes ``FI``) are kept as they are, so two different
    names never fold to the same string by changing length.
    """
    folded = []
    for char in text:
        upper = char.upper()
        folded.append(upper if len(upper) == 1 else char)
    return "".join(folded)


@dataclass(frozen=True, eq=False)
class RegistryPath:
    """Registry path value object.

    Attributes:
        hive: Canonical hive of the path.
        subkey: Sub-path below the hive, segments joined by a backslash.
            Empty for the hive root itself.
    """

    hive: RegistryHive
    subkey: str = ""

    def __post_init__(self) -> None:
        """Validate and canonicalize the sub-path."""
        if not isinstance(self.hive, RegistryHive):
            raise ValueError(f"Unknown registry hive: {self.hive!r}")
        if "\x00" in self.subkey:
            raise ValueError("Registry path must not contain null characters")
        segments = self.subkey.replace("/", SEPARATOR).split(SEPARATOR)
        object.__setattr__(self, "subkey", SEPARATOR.join(s for s in segments if s))

    @classmethod
    def parse(cls, raw: Optional[str]) -> "RegistryPath":
        """Parse caller input into a registry path.

        Forward slashes are accepted as separators, surrounding whitespace is
        trimmed and the hive token may be the full name or its alias in any
        case.

        Args:
            raw: Path as supplied by the caller.

        Returns:
            RegistryPath: The parsed path.

        Raises:
            InvalidPathError: If the input is empty, names an unknown hive or
                contains a null character.
        """
        if raw is None or not raw.strip():
            raise InvalidPathError("Registry path cannot be empty")

        text = raw.replace("/", SEPARATOR).strip()
        hive_token, _, remainder = text.partition(SEPARATOR)
        hive = RegistryHive.from_token(hive_token)
        if hive is None:
            raise InvalidPathError(f"Unknown registry hive: {hive_token}")
        if "\x00" in remainder:
            raise InvalidPathError("Registry path must not contain null characters")
        return cls(hive=hive, subkey=remainder)

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(self.subkey.split(SEPARATOR)) if self.subkey else ()

    @property
    def name(self) -> str:
        """Last segment of the path, or the hive name for a hive root."""
        return self.segments[-1] if self.subkey else self.hive.value

    @property
    def parent(self) -> Optional["RegistryPath"]:
        """The containing key, or None for a hive root."""
        if not self.subkey:
            return None
        return RegistryPath(self.hive, SEPARATOR.join(self.segments[:-1]))

    def normalize(self) -> str:
        """Canonical string form: full hive name, separator, sub-path."""
        if not self.subkey:
            return self.hive.value
        return f"{self.hive.value}{SEPARATOR}{self.subkey}"

    def depth(self) -> int:
        """Number of non-empty segments below the hive."""
        return len(self.segments)

    def child(self, name: str) -> "RegistryPath":
        """Return the path of a direct sub-key.

        Raises:
            ValueError: If the name is empty or contains a separator.
        """
        if not name or not name.strip() or SEPARATOR in name or "/" in name:
            raise ValueError(f"Invalid sub-key name: {name!r}")
        if not self.subkey:
            return RegistryPath(self.hive, name)
        return RegistryPath(self.hive, f"{self.subkey}{SEPARATOR}{name}")

    def contains_or_equals(self, other: "RegistryPath") -> bool:
        """True when `other` is this path or lies anywhere beneath it."""
        if self.hive is not other.hive:
            return False
        if not self.subkey:
            return True
        mine = fold_case(self.subkey)
        theirs = fold_case(other.subkey)
        return theirs == mine or theirs.startswith(mine + SEPARATOR)

    def relative_to(self, ancestor: "RegistryPath") -> str:
        """Sub-path of this path below `ancestor`.

        Raises:
            ValueError: If `ancestor` does not contain this path.
        """
        if not ancestor.contains_or_equals(self):
            raise ValueError(f"{self} is not beneath {ancestor}")
        return SEPARATOR.join(self.segments[ancestor.depth():])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegistryPath):
            return NotImplemented
        return fold_case(self.normalize()) == fold_case(other.normalize())

    def __hash__(self) -> int:
        return hash(fold_case(self.normalize()))

    def __str__(self) -> str:
        return self.normalize()
