"""Resource limits applied to every registry operation."""

from dataclasses import dataclass
from typing import Any, ClassVar


@dataclass(frozen=True)
class RegistryLimits:
    """Upper bounds on enumeration, payload size and execution time.

    Attributes:
        max_enumeration_depth: Global ceiling on enumeration depth.
        max_values_per_query: Most values (or keys) returned by one listing.
        max_value_size_bytes: Largest value payload read or written.
        operation_timeout_ms: Time budget of a single backend operation.
        rate_limit_per_minute: Requests allowed per client per minute.
    """

    max_enumeration_depth: int = 3
    max_values_per_query: int = 100
    max_value_size_bytes: int = 1024 * 1024
    operation_timeout_ms: int = 5000
    rate_limit_per_minute: int = 100

    DEFAULT_MAX_ENUMERATION_DEPTH: ClassVar[int] = 3

    def __post_init__(self) -> None:
        """Validate that every limit is positive."""
        for name in (
            "max_enumeration_depth",
            "max_values_per_query",
            "max_value_size_bytes",
            "operation_timeout_ms",
            "rate_limit_per_minute",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @property
    def operation_timeout_seconds(self) -> float:
        return self.operation_timeout_ms / 1000.0

    @classmethod
    def from_settings(cls, settings: Any) -> "RegistryLimits":
        """Build limits from the application settings object."""
        return cls(
            max_enumeration_depth=settings.MAX_ENUMERATION_DEPTH,
            max_values_per_query=settings.MAX_VALUES_PER_QUERY,
            max_value_size_bytes=settings.MAX_VALUE_SIZE_BYTES,
            operation_timeout_ms=settings.OPERATION_TIMEOUT_MS,
            rate_limit_per_minute=settings.RATE_LIMIT_PER_MINUTE,
        )
