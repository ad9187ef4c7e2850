"""Registry API routers."""

from fastapi import APIRouter

from .clsid import router as clsid_router
from .keys import router as keys_router
from .values import router as values_router

router = APIRouter()

router.include_router(values_router, prefix="/values", tags=["registry values"])
router.include_router(keys_router, prefix="/keys", tags=["registry keys"])
router.include_router(clsid_router, prefix="/clsid", tags=["registry keys"])
