"""Path Authorization Domain Service.

This service decides whether a registry operation on a given path is
permitted for a caller, and how deep an enumeration may go. It is the single
gate in front of every registry backend call.

Decision order:
1. Caller tier: the caller must hold the tier the operation class requires
   (read needs READ_ONLY, write needs READ_WRITE, delete needs ADMIN).
2. Deny paths: a deny path containing the requested path always wins.
3. Allow rules: the first rule, in configured order, whose root contains the
   path is applied. A later, more specific rule is never consulted.
4. Rule tier: the applied rule must grant the required tier.
5. Enumeration depth: the granted depth is the smallest of the requested
   depth, the rule's depth and the global ceiling. Clamping never denies.

The service holds an immutable policy, performs no I/O and returns decision
values; turning a `Deny` into an error is the caller's job.
"""

from typing import Optional

import structlog

from src.domain.interfaces.authorization import IAuthorizationService
from src.domain.value_objects.access_tier import AccessTier
from src.domain.value_objects.authorization_decision import (
    AuthorizationDecision,
    DenialReason,
    Deny,
    Permit,
)
from src.domain.value_objects.policy import PolicySet
from src.domain.value_objects.registry_limits import RegistryLimits
from src.domain.value_objects.registry_path import RegistryPath
from src.domain.value_objects.request_context import RequestContext

logger = structlog.get_logger(__name__)


class PathAuthorizationService(IAuthorizationService):
    """Authorization engine over an immutable `PolicySet`.

    Thread-safe by construction: nothing is mutated after `__init__`, so one
    instance serves all concurrent requests.
    """

    def __init__(
        self,
        policy: PolicySet,
        global_max_depth: int = RegistryLimits.DEFAULT_MAX_ENUMERATION_DEPTH,
    ):
        """Initialize the engine.

        Args:
            policy: The access policy to enforce
            global_max_depth: Ceiling applied to every enumeration

        Raises:
            ValueError: If `global_max_depth` is not positive
        """
        if global_max_depth < 1:
            raise ValueError("Global max depth must be positive")
        self._policy = policy
        self._global_max_depth = global_max_depth

        logger.info(
            "PathAuthorizationService initialized",
            policy_source=policy.source,
            allow_rules=len(policy.allow_rules),
            deny_paths=len(policy.deny_paths),
            global_max_depth=global_max_depth,
        )

    @property
    def policy(self) -> PolicySet:
        return self._policy

    @property
    def global_max_depth(self) -> int:
        return self._global_max_depth

    def authorize_read(self, path: RegistryPath, context: RequestContext) -> AuthorizationDecision:
        return self._evaluate(path, context, AccessTier.READ_ONLY, "read")

    def authorize_write(self, path: RegistryPath, context: RequestContext) -> AuthorizationDecision:
        return self._evaluate(path, context, AccessTier.READ_WRITE, "write")

    def authorize_delete(self, path: RegistryPath, context: RequestContext) -> AuthorizationDecision:
        return self._evaluate(path, context, AccessTier.ADMIN, "delete")

    def authorize_enumerate(
        self, path: RegistryPath, requested_depth: int, context: RequestContext
    ) -> AuthorizationDecision:
        """Decide an enumeration and compute its effective depth.

        Raises:
            ValueError: If `requested_depth` is below 1
        """
        if requested_depth < 1:
            raise ValueError("Requested depth must be at least 1")
        return self._evaluate(
            path, context, AccessTier.READ_ONLY, "enumerate", requested_depth=requested_depth
        )

    def _evaluate(
        self,
        path: RegistryPath,
        context: RequestContext,
        required: AccessTier,
        operation: str,
        requested_depth: Optional[int] = None,
    ) -> AuthorizationDecision:
        normalized = path.normalize()

        if not context.caller_tier.satisfies(required):
            return self._deny(
                DenialReason.INSUFFICIENT_CALLER_TIER,
                f"Caller tier '{context.caller_tier.rule_name}' cannot {operation}; "
                f"'{required.rule_name}' is required",
                context,
                normalized,
                operation,
            )

        denied_by = self._policy.find_deny(path)
        if denied_by is not None:
            return self._deny(
                DenialReason.EXPLICITLY_DENIED,
                f"Path '{normalized}' is denied by '{denied_by.normalize()}'",
                context,
                normalized,
                operation,
            )

        rule = self._policy.find_allow_rule(path)
        if rule is None:
            return self._deny(
                DenialReason.NOT_IN_ALLOW_LIST,
                f"Path '{normalized}' is not in the allowed list",
                context,
                normalized,
                operation,
            )

        if not rule.tier.satisfies(required):
            return self._deny(
                DenialReason.RULE_INSUFFICIENT_TIER,
                f"Rule '{rule.root.normalize()}' grants '{rule.tier.rule_name}'; "
                f"{operation} requires '{required.rule_name}'",
                context,
                normalized,
                operation,
            )

        effective_depth = None
        if requested_depth is not None:
            effective_depth = min(requested_depth, rule.max_depth, self._global_max_depth)
            if effective_depth < requested_depth:
                logger.warning(
                    "Enumeration depth reduced",
                    correlation_id=context.correlation_id,
                    path=normalized,
                    requested_depth=requested_depth,
                    effective_depth=effective_depth,
                    rule_max_depth=rule.max_depth,
                    global_max_depth=self._global_max_depth,
                )

        logger.debug(
            "Registry access permitted",
            correlation_id=context.correlation_id,
            path=normalized,
            operation=operation,
            rule=rule.root.normalize(),
            effective_depth=effective_depth,
        )
        return Permit(effective_depth=effective_depth)

    @staticmethod
    def _deny(
        reason: DenialReason,
        message: str,
        context: RequestContext,
        normalized: str,
        operation: str,
    ) -> Deny:
        logger.warning(
            "Registry access denied",
            correlation_id=context.correlation_id,
            path=normalized,
            operation=operation,
            caller_tier=context.caller_tier.rule_name,
            reason=reason.value,
            detail=message,
        )
        return Deny(reason=reason, message=message)
