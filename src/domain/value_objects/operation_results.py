"""Results returned by the registry operations service."""

from dataclasses import dataclass
from typing import List, Optional

from src.domain.value_objects.registry_value import RegistryValue


@dataclass(frozen=True)
class ValueReadResult:
    """Outcome of a read. A missing key or value is reported, not raised."""

    path: str
    name: str
    exists: bool
    value: Optional[RegistryValue] = None


@dataclass(frozen=True)
class DeletionResult:
    """Outcome of a delete; `deleted` is False when nothing was there."""

    path: str
    deleted: bool
    name: Optional[str] = None


@dataclass(frozen=True)
class KeyEnumerationResult:
    """Sub-keys found below `path`, relative to it.

    Attributes:
        requested_depth: Depth the caller asked for.
        effective_depth: Depth granted after clamping to rule and global limits.
    """

    path: str
    requested_depth: int
    effective_depth: int
    keys: List[str]

    @property
    def depth_reduced(self) -> bool:
        return self.effective_depth < self.requested_depth


@dataclass(frozen=True)
class ValueListing:
    path: str
    values: List[RegistryValue]


@dataclass(frozen=True)
class ClsidSearchResult:
    """A COM class whose ``InprocServer32`` key names a DLL.

    Attributes:
        clsid: Name of the class key, normally a braced GUID.
        dll_path: Default value of ``InprocServer32``, as stored.
        registry_path: Normalized path of the ``InprocServer32`` key.
    """

    clsid: str
    dll_path: str
    registry_path: str


@dataclass(frozen=True)
class ClsidSearch:
    dll_filter: Optional[str]
    max_results: int
    results: List[ClsidSearchResult]
