"""API v1 router configuration.
"""

from fastapi import APIRouter

from .guides import router as guides_router
from .health import router as health_router
from .metrics import router as metrics_router
from .registry import router as registry_router

api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(metrics_router, prefix="/metrics", tags=["metrics"])
api_router.include_router(registry_router, prefix="/registry")
api_router.include_router(guides_router, prefix="/guides", tags=["guides"])
