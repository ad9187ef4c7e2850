"""Metrics endpoint for exposing service metrics.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from src.core.config.settings import settings
from src.core.metrics import metrics_collector

router = APIRouter()


@router.get("/", response_model=Dict[str, Any])
async def get_metrics(include_system: bool = True):
    """Get service metrics.

    This endpoint exposes various metrics including:
    - System metrics (CPU, memory, disk)
    - HTTP request metrics (request counts, response times)
    - Registry operation metrics (counts, durations, errors, denials by reason)

    Args:
        include_system: Also sample CPU, memory and disk usage with psutil.

    Returns:
        Dict[str, Any]: Collected metrics in a structured dictionary format.

    Raises:
        HTTPException: If not in debug mode, returns HTTP 403 with a message
                       indicating restricted access.
    """
    if not settings.DEBUG:
        raise HTTPException(
            status_code=403,
            detail="Metrics endpoint is only available in debug mode",
        )

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "metrics": metrics_collector.get_metrics(include_system=include_system),
    }
