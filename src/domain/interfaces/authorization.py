"""Authorization service interface."""

from abc import ABC, abstractmethod

from src.domain.value_objects.authorization_decision import AuthorizationDecision
from src.domain.value_objects.registry_path import RegistryPath
from src.domain.value_objects.request_context import RequestContext


class IAuthorizationService(ABC):
    """Interface for path-based authorization decisions.

    Implementations are pure: they perform no I/O, hold no mutable state and
    return a decision value instead of raising for denials.
    """

    @abstractmethod
    def authorize_read(self, path: RegistryPath, context: RequestContext) -> AuthorizationDecision:
        """Decide whether `path` may be read.

        Args:
            path: Parsed registry path
            context: Request context carrying the caller tier

        Returns:
            AuthorizationDecision: Permit or Deny
        """
        pass

    @abstractmethod
    def authorize_write(self, path: RegistryPath, context: RequestContext) -> AuthorizationDecision:
        """Decide whether values under `path` may be created or modified.

        Args:
            path: Parsed registry path
            context: Request context carrying the caller tier

        Returns:
            AuthorizationDecision: Permit or Deny
        """
        pass

    @abstractmethod
    def authorize_delete(self, path: RegistryPath, context: RequestContext) -> AuthorizationDecision:
        """Decide whether a value or key under `path` may be deleted.

        Args:
            path: Parsed registry path
            context: Request context carrying the caller tier

        Returns:
            AuthorizationDecision: Permit or Deny
        """
        pass

    @abstractmethod
    def authorize_enumerate(
        self, path: RegistryPath, requested_depth: int, context: RequestContext
    ) -> AuthorizationDecision:
        """Decide whether sub-keys of `path` may be listed, and how deep.

        Args:
            path: Parsed registry path
            requested_depth: Depth asked for by the caller
            context: Request context carrying the caller tier

        Returns:
            AuthorizationDecision: Permit carrying the effective depth, or Deny
        """
        pass
