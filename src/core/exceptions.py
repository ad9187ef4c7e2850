from __future__ import annotations

"""Centralized, structured exception hierarchy for regguard.

This module defines the custom exceptions raised across the service. Every
exception carries a machine-readable `code` for programmatic handling and a
human-readable `message` for logging.

The hierarchy is designed to:
- Keep validation faults (malformed paths, bad value types) apart from
  authorization denials.
- Keep "not found" outcomes apart from denials so callers can tell the two
  situations apart without learning anything about the policy.
- Map cleanly to HTTP status codes in the API layer (see `src.core.handlers`).
"""

from typing import TYPE_CHECKING, Final, Optional

if TYPE_CHECKING:
    from src.domain.value_objects.authorization_decision import DenialReason

__all__: Final = [
    "RegGuardError",
    "ValidationError",
    "InvalidPathError",
    "InvalidValueTypeError",
    "AccessDeniedError",
    "ResourceNotFoundError",
    "KeyNotFoundError",
    "ValueNotFoundError",
    "LimitExceededError",
    "OperationTimeoutError",
    "OperationCancelledError",
]

ACCESS_NOT_PERMITTED: Final = "Access not permitted"


class RegGuardError(Exception):
    """Base exception class for all custom errors in regguard.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    # A concise, structured representation used by loggers & FastAPI handlers.
    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Validation errors (map to 400 Bad Request)
# ---------------------------------------------------------------------------


class ValidationError(RegGuardError):
    """Raised for general input validation failures."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(message, code)


class InvalidPathError(ValidationError):
    """Raised when a registry path cannot be parsed.

    Covers empty input, an unrecognized hive and embedded null characters.
    This is a fault in the request itself, never an authorization outcome.
    """

    def __init__(self, message: str, code: str = "invalid_path"):
        super().__init__(message, code)


class InvalidValueTypeError(ValidationError):
    """Raised when a value type is unknown or the data does not fit it."""

    def __init__(self, message: str, code: str = "invalid_value_type"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Authorization errors (map to 403 Forbidden)
# ---------------------------------------------------------------------------


class AccessDeniedError(RegGuardError):
    """Raised when the authorization engine denies an operation.

    The caller-facing message is always the same, so that a caller cannot
    probe the policy. The denial reason and correlation id travel along for
    diagnostics and are the only extra details exposed.

    Attributes:
        reason: The `DenialReason` produced by the engine.
        correlation_id: Identifier of the request that was denied.
    """

    def __init__(
        self,
        reason: "DenialReason",
        correlation_id: str,
        message: str = ACCESS_NOT_PERMITTED,
        code: str = "access_not_permitted",
    ):
        super().__init__(message, code)
        self.reason = reason
        self.correlation_id = correlation_id


# ---------------------------------------------------------------------------
# Resource errors (map to 404 Not Found)
# ---------------------------------------------------------------------------


class ResourceNotFoundError(RegGuardError):
    """Base class for missing keys and values."""

    def __init__(self, message: str, code: str = "not_found"):
        super().__init__(message, code)


class KeyNotFoundError(ResourceNotFoundError):
    """Raised when a registry key does not exist."""

    def __init__(self, path: str, code: str = "key_not_found"):
        super().__init__(f"Registry key not found: {path}", code)
        self.path = path


class ValueNotFoundError(ResourceNotFoundError):
    """Raised when a named value does not exist under an existing key."""

    def __init__(self, path: str, name: str, code: str = "value_not_found"):
        super().__init__(f"Registry value '{name}' not found under {path}", code)
        self.path = path
        self.name = name


# ---------------------------------------------------------------------------
# Limits and execution errors
# ---------------------------------------------------------------------------


class LimitExceededError(RegGuardError):
    """Raised when an operation would exceed a configured resource limit.

    Maps to `422 Unprocessable Entity`.

    Attributes:
        limit_type: Which limit was hit (e.g. "value_size", "value_count").
        requested: The size or count the operation needed.
        maximum: The configured maximum.
    """

    def __init__(
        self,
        limit_type: str,
        requested: int,
        maximum: int,
        code: str = "limit_exceeded",
    ):
        super().__init__(
            f"Limit '{limit_type}' exceeded: {requested} > {maximum}", code
        )
        self.limit_type = limit_type
        self.requested = requested
        self.maximum = maximum


class OperationTimeoutError(RegGuardError):
    """Raised when a registry operation does not finish in time (504)."""

    def __init__(self, operation: str, timeout_ms: int, code: str = "operation_timeout"):
        super().__init__(f"Operation '{operation}' timed out after {timeout_ms} ms", code)
        self.operation = operation
        self.timeout_ms = timeout_ms


class OperationCancelledError(RegGuardError):
    """Raised when the request's cancellation token fires mid-operation (503)."""

    def __init__(self, message: str = "Operation cancelled", code: str = "operation_cancelled"):
        super().__init__(message, code)


def denial_reason_code(reason: Optional["DenialReason"]) -> Optional[str]:
    """Return the wire code of a denial reason, tolerating `None`."""
    return reason.value if reason is not None else None
