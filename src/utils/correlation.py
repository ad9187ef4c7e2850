"""Correlation id generation.

Ids look like ``req-1718000000000-0000002A``: the Unix time in milliseconds
followed by a process-wide counter in hex, so ids sort by creation order and
stay unique within one process even when generated in the same millisecond.
"""

import itertools
import threading
import time

CORRELATION_HEADER = "X-Correlation-ID"

_counter = itertools.count(1)
_lock = threading.Lock()


def new_correlation_id() -> str:
    """Return a fresh correlation id."""
    with _lock:
        sequence = next(_counter) & 0xFFFFFFFF
    return f"req-{int(time.time() * 1000)}-{sequence:08X}"
