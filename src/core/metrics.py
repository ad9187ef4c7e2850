"""
Metrics collection module for monitoring service performance and health.
"""
import copy
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import psutil

from src.core.logging import logger


class MetricsCollector:
    """
    Collects and manages service metrics.

    This class provides functionality for collecting various metrics including:
    - System metrics (CPU, memory, disk)
    - HTTP request metrics (request counts, response times, status codes)
    - Registry operation metrics (counts, durations, errors, denials)
    - Concurrency (operations currently in flight and the peak seen)

    All updates are guarded by a lock; registry operations run in worker
    threads and may finish concurrently.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._metrics: Dict[str, Any] = self._empty_metrics()
        self._start_time = datetime.now(timezone.utc)

    @staticmethod
    def _empty_metrics() -> Dict[str, Any]:
        return {
            "system": {},
            "application": {"requests": {}},
            "registry": {
                "operations": {},
                "denials": {},
                "concurrent_operations": 0,
                "peak_concurrent_operations": 0,
            },
        }

    def collect_system_metrics(self) -> Dict[str, Any]:
        """Collect system-level metrics."""
        try:
            memory = psutil.virtual_memory()
            disk = psutil.disk_usage("/")
            metrics = {
                "cpu_percent": psutil.cpu_percent(interval=None),
                "memory_percent": memory.percent,
                "memory_used": memory.used,
                "memory_total": memory.total,
                "disk_percent": disk.percent,
                "disk_used": disk.used,
                "disk_total": disk.total,
                "uptime": (datetime.now(timezone.utc) - self._start_time).total_seconds(),
            }
        except (OSError, psutil.Error) as e:
            logger.error("metrics_collection_error", error=str(e))
            return {}

        with self._lock:
            self._metrics["system"] = metrics
        return metrics

    def record_request_metric(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        duration: float
    ) -> None:
        """Record HTTP request metrics."""
        key = f"{method}:{endpoint}"
        with self._lock:
            requests = self._metrics["application"]["requests"]
            entry = requests.setdefault(
                key, {"count": 0, "total_duration": 0.0, "status_codes": {}}
            )
            entry["count"] += 1
            entry["total_duration"] += duration
            entry["status_codes"][str(status_code)] = (
                entry["status_codes"].get(str(status_code), 0) + 1
            )

    def record_operation(
        self,
        operation: str,
        duration: float,
        success: bool,
        error_code: Optional[str] = None,
    ) -> None:
        """Record the outcome and duration of a registry operation."""
        with self._lock:
            operations = self._metrics["registry"]["operations"]
            entry = operations.setdefault(
                operation,
                {
                    "count": 0,
                    "success_count": 0,
                    "error_count": 0,
                    "total_duration": 0.0,
                    "min_duration": None,
                    "max_duration": None,
                    "errors": {},
                },
            )
            entry["count"] += 1
            entry["total_duration"] += duration
            entry["min_duration"] = (
                duration if entry["min_duration"] is None else min(entry["min_duration"], duration)
            )
            entry["max_duration"] = (
                duration if entry["max_duration"] is None else max(entry["max_duration"], duration)
            )
            if success:
                entry["success_count"] += 1
            else:
                entry["error_count"] += 1
                code = error_code or "unknown"
                entry["errors"][code] = entry["errors"].get(code, 0) + 1

    def record_denial(self, reason: str) -> None:
        """Count an authorization denial by reason."""
        with self._lock:
            denials = self._metrics["registry"]["denials"]
            denials[reason] = denials.get(reason, 0) + 1

    def operation_started(self) -> None:
        with self._lock:
            registry = self._metrics["registry"]
            registry["concurrent_operations"] += 1
            registry["peak_concurrent_operations"] = max(
                registry["peak_concurrent_operations"], registry["concurrent_operations"]
            )

    def operation_finished(self) -> None:
        with self._lock:
            registry = self._metrics["registry"]
            registry["concurrent_operations"] = max(0, registry["concurrent_operations"] - 1)

    def start_timer(self, operation: str) -> "OperationTimer":
        """Return a context manager that measures one registry operation."""
        return OperationTimer(self, operation)

    def get_metrics(self, include_system: bool = True) -> Dict[str, Any]:
        """Get a snapshot of all collected metrics."""
        if include_system:
            self.collect_system_metrics()
        with self._lock:
            snapshot = copy.deepcopy(self._metrics)
        for entry in snapshot["registry"]["operations"].values():
            entry["avg_duration"] = entry["total_duration"] / entry["count"] if entry["count"] else 0.0
        return snapshot

    def reset_metrics(self) -> None:
        """Reset all metrics to initial state."""
        with self._lock:
            self._metrics = self._empty_metrics()
            self._start_time = datetime.now(timezone.utc)


class OperationTimer:
    """Context manager recording duration, outcome and concurrency of an operation.

    An exception leaving the block counts as a failure, labelled with the
    exception's ``code`` attribute when it has one. `fail()` marks a failure
    that is reported without raising.
    """

    def __init__(self, collector: MetricsCollector, operation: str):
        self._collector = collector
        self._operation = operation
        self._error_code: Optional[str] = None
        self._start = 0.0
        self.duration = 0.0

    def fail(self, error_code: str) -> None:
        self._error_code = error_code

    def __enter__(self) -> "OperationTimer":
        self._collector.operation_started()
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.duration = time.perf_counter() - self._start
        error_code = self._error_code
        if exc_type is not None:
            error_code = getattr(exc, "code", None) or exc_type.__name__
        try:
            self._collector.record_operation(
                self._operation, self.duration, error_code is None, error_code
            )
        finally:
            self._collector.operation_finished()
        return False


# Global metrics collector instance
metrics_collector = MetricsCollector()
