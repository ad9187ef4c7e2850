"""COM Class Search Endpoint

Lists COM classes registered under ``HKEY_CLASSES_ROOT\\CLSID`` with an
in-process server, optionally filtered by DLL name. Useful for finding which
classes load a given DLL.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.core.dependencies.registry import get_registry_operations, get_request_context
from src.domain.services.registry.registry_operations_service import RegistryOperationsService
from src.domain.value_objects.request_context import RequestContext

from .schemas import ClsidSearchRequest, ClsidSearchResponse, ClsidSearchResultModel

router = APIRouter()

Operations = Annotated[RegistryOperationsService, Depends(get_registry_operations)]
Context = Annotated[RequestContext, Depends(get_request_context)]


@router.post("/search", response_model=ClsidSearchResponse)
async def search_clsid(body: ClsidSearchRequest, operations: Operations, context: Context):
    """Find COM classes whose ``InprocServer32`` DLL matches the filter."""
    search = await operations.search_clsid(body.dll_filter, body.max_results, context)
    return ClsidSearchResponse(
        dll_filter=search.dll_filter,
        max_results=search.max_results,
        results=[
            ClsidSearchResultModel(clsid=r.clsid, dll_path=r.dll_path, registry_path=r.registry_path)
            for r in search.results
        ],
        count=len(search.results),
        correlation_id=context.correlation_id,
    )
