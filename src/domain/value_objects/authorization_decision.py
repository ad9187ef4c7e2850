"""Authorization decision value objects.

Every evaluation ends in exactly one of two outcomes: a `Permit` (with the
granted enumeration depth where that applies) or a `Deny` (with a reason
code and a diagnostic message).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class DenialReason(str, Enum):
    """Why an operation was denied."""

    INSUFFICIENT_CALLER_TIER = "insufficient-caller-tier"
    EXPLICITLY_DENIED = "explicitly-denied"
    NOT_IN_ALLOW_LIST = "not-in-allow-list"
    RULE_INSUFFICIENT_TIER = "rule-insufficient-tier"


@dataclass(frozen=True)
class Permit:
    """The operation may proceed.

    Attributes:
        effective_depth: Granted enumeration depth; None for operations that
            do not enumerate.
    """

    effective_depth: Optional[int] = None

    @property
    def allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Deny:
    """The operation must not proceed.

    Attributes:
        reason: Machine-readable denial reason.
        message: Diagnostic text for logs. Never shown to callers verbatim.
    """

    reason: DenialReason
    message: str

    @property
    def allowed(self) -> bool:
        return False


AuthorizationDecision = Union[Permit, Deny]
