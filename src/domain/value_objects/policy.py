"""Policy Value Objects.

An access policy is an ordered list of allow rules plus an unordered set of
deny paths. The policy is loaded once at startup and never changes while the
process runs.
"""

from dataclasses import dataclass, field
from typing import ClassVar, FrozenSet, Iterable, Optional, Tuple

from src.domain.value_objects.access_tier import AccessTier
from src.domain.value_objects.registry_path import RegistryPath


@dataclass(frozen=True)
class AllowRule:
    """Grants access to a subtree up to a tier and an enumeration depth.

    Attributes:
        root: Subtree root; the rule covers the root and everything beneath it.
        tier: Highest operation class the rule permits.
        max_depth: Deepest enumeration the rule allows below the requested key.
    """

    root: RegistryPath
    tier: AccessTier = AccessTier.READ_ONLY
    max_depth: int = 2

    MIN_DEPTH: ClassVar[int] = 1
    MAX_DEPTH: ClassVar[int] = 10
    DEFAULT_DEPTH: ClassVar[int] = 2

    def __post_init__(self) -> None:
        """Validate rule depth."""
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise ValueError("Rule max depth must be an integer")
        if not self.MIN_DEPTH <= self.max_depth <= self.MAX_DEPTH:
            raise ValueError(
                f"Rule max depth must be between {self.MIN_DEPTH} and {self.MAX_DEPTH}"
            )

    def covers(self, path: RegistryPath) -> bool:
        return self.root.contains_or_equals(path)


@dataclass(frozen=True)
class PolicySet:
    """Immutable access policy.

    Allow rules keep their configured order; the first rule covering a path
    is the one applied. Deny paths win over every allow rule.

    Attributes:
        allow_rules: Ordered allow rules.
        deny_paths: Subtrees that are never accessible.
        source: Where the policy came from ("default" or a file path). Not
            part of equality.
    """

    allow_rules: Tuple[AllowRule, ...]
    deny_paths: FrozenSet[RegistryPath] = frozenset()
    source: str = field(default="default", compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "allow_rules", tuple(self.allow_rules))
        object.__setattr__(self, "deny_paths", frozenset(self.deny_paths))

    @classmethod
    def default(cls) -> "PolicySet":
        """Built-in policy used when no valid policy file is available.

        Returns:
            PolicySet: Read access to the Windows CurrentVersion key and the
            current user's Software key; security-sensitive hives denied.
        """
        return cls(
            allow_rules=(
                AllowRule(
                    RegistryPath.parse(
                        "HKEY_LOCAL_MACHINE\\SOFTWARE\\Microsoft\\Windows\\CurrentVersion"
                    ),
                    AccessTier.READ_ONLY,
                    2,
                ),
                AllowRule(
                    RegistryPath.parse("HKEY_CURRENT_USER\\Software"),
                    AccessTier.READ_ONLY,
                    3,
                ),
            ),
            deny_paths=frozenset(
                RegistryPath.parse(p)
                for p in (
                    "HKEY_LOCAL_MACHINE\\SECURITY",
                    "HKEY_LOCAL_MACHINE\\SAM",
                    "HKEY_LOCAL_MACHINE\\SYSTEM\\CurrentControlSet\\Control\\Lsa",
                )
            ),
            source="default",
        )

    @classmethod
    def from_rules(
        cls,
        allow_rules: Iterable[AllowRule],
        deny_paths: Iterable[RegistryPath] = (),
        source: str = "default",
    ) -> "PolicySet":
        return cls(tuple(allow_rules), frozenset(deny_paths), source)

    def find_deny(self, path: RegistryPath) -> Optional[RegistryPath]:
        """Return the deny path blocking `path`, if any."""
        for denied in self.deny_paths:
            if denied.contains_or_equals(path):
                return denied
        return None

    def find_allow_rule(self, path: RegistryPath) -> Optional[AllowRule]:
        """Return the first allow rule, in configured order, covering `path`."""
        for rule in self.allow_rules:
            if rule.covers(path):
                return rule
        return None
