"""Request Context Value Objects.

Each call into the service gets a fresh `RequestContext` that identifies the
call in logs, states the caller's tier and carries a cancellation token down
to the registry backend.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone

from src.core.exceptions import OperationCancelledError
from src.domain.value_objects.access_tier import AccessTier


class CancellationToken:
    """Thread-safe, one-way cancellation flag.

    Backends run blocking work in worker threads and check the token between
    native calls; cancelling it makes the next check raise.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise `OperationCancelledError` once the token has been cancelled."""
        if self._event.is_set():
            raise OperationCancelledError()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


@dataclass(frozen=True)
class RequestContext:
    """Per-call identity and control.

    Attributes:
        correlation_id: Unique identifier of the call, used in every log line.
        caller_tier: Tier the caller is entitled to.
        cancellation: Token observed by the registry backend.
        created_at: Timezone-aware creation timestamp.
    """

    correlation_id: str
    caller_tier: AccessTier = AccessTier.READ_ONLY
    cancellation: CancellationToken = field(default_factory=CancellationToken, compare=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate context fields."""
        if not self.correlation_id or not self.correlation_id.strip():
            raise ValueError("Correlation id cannot be empty")
        if not isinstance(self.caller_tier, AccessTier):
            raise ValueError("Caller tier must be an AccessTier")
        if self.created_at.tzinfo is None:
            raise ValueError("Request timestamp must be timezone-aware")
