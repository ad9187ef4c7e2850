"""Access tiers shared by callers and allow rules."""

from enum import IntEnum
from typing import Dict, Optional


class AccessTier(IntEnum):
    """Ordered authorization level: READ_ONLY < READ_WRITE < ADMIN.

    The same scale describes what a caller is entitled to and what an allow
    rule grants; the two are checked independently.
    """

    READ_ONLY = 0
    READ_WRITE = 1
    ADMIN = 2

    @property
    def rule_name(self) -> str:
        """Name used for this tier in policy files."""
        return _RULE_NAMES[self]

    def satisfies(self, required: "AccessTier") -> bool:
        return self >= required

    @classmethod
    def from_name(
        cls, name: Optional[str], default: Optional["AccessTier"] = None
    ) -> Optional["AccessTier"]:
        """Resolve a tier from a policy-file or environment spelling.

        Accepts ``read``, ``read_write`` and ``admin`` as well as
        ``READ_ONLY``, ``READ_WRITE`` and ``ADMIN``, case-insensitively.

        Args:
            name: The spelling to resolve.
            default: Returned when the name is missing or unknown.

        Returns:
            Optional[AccessTier]: The tier, or `default`.
        """
        if name is None:
            return default
        key = name.strip().lower().replace("-", "_")
        return _ALIASES.get(key, default)


_RULE_NAMES: Dict[AccessTier, str] = {
    AccessTier.READ_ONLY: "read",
    AccessTier.READ_WRITE: "read_write",
    AccessTier.ADMIN: "admin",
}

_ALIASES: Dict[str, AccessTier] = {
    "read": AccessTier.READ_ONLY,
    "read_only": AccessTier.READ_ONLY,
    "readonly": AccessTier.READ_ONLY,
    "read_write": AccessTier.READ_WRITE,
    "readwrite": AccessTier.READ_WRITE,
    "admin": AccessTier.ADMIN,
}
