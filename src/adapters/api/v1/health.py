from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel

from src.core.config.settings import settings
from src.core.dependencies.registry import Components

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    version: str
    caller_tier: str
    backend: str
    policy: Dict[str, Any]
    timestamp: datetime


@router.get("/", response_model=HealthResponse)
async def health_check(components: Components):
    """
    Health check reporting the caller tier, the registry backend and a summary
    of the policy in force. Rule contents are not exposed.
    """
    policy = components.policy
    return HealthResponse(
        status="ok",
        env=settings.APP_ENV,
        version=settings.VERSION,
        caller_tier=components.caller_tier.name,
        backend=components.backend_name,
        policy={
            "source": "file" if policy.source != "default" else "default",
            "allow_rules": len(policy.allow_rules),
            "deny_paths": len(policy.deny_paths),
            "max_enumeration_depth": components.limits.max_enumeration_depth,
        },
        timestamp=datetime.now(timezone.utc),
    )
