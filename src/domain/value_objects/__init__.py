"""Domain Value Objects for the registry access domain.

Value objects are immutable objects that describe domain concepts by their attributes
rather than their identity: registry paths, access tiers, policies, decisions and the
per-request context.
"""

from .access_tier import AccessTier
from .authorization_decision import AuthorizationDecision, DenialReason, Deny, Permit
from .operation_results import (
    ClsidSearch,
    ClsidSearchResult,
    DeletionResult,
    KeyEnumerationResult,
    ValueListing,
    ValueReadResult,
)
from .policy import AllowRule, PolicySet
from .registry_limits import RegistryLimits
from .registry_path import RegistryHive, RegistryPath
from .registry_value import RegistryKeyInfo, RegistryValue, RegistryValueType
from .request_context import CancellationToken, RequestContext

__all__ = [
    "AccessTier",
    "AuthorizationDecision",
    "DenialReason",
    "Deny",
    "Permit",
    "ClsidSearch",
    "ClsidSearchResult",
    "DeletionResult",
    "KeyEnumerationResult",
    "ValueListing",
    "ValueReadResult",
    "AllowRule",
    "PolicySet",
    "RegistryLimits",
    "RegistryHive",
    "RegistryPath",
    "RegistryKeyInfo",
    "RegistryValue",
    "RegistryValueType",
    "CancellationToken",
    "RequestContext",
]
