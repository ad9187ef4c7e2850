"""Registry Key Endpoints

Enumerate, describe, delete and probe registry keys. Enumeration depth is
decided by the access policy: the response states both the requested and the
effective depth.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.core.dependencies.registry import get_registry_operations, get_request_context
from src.domain.services.registry.registry_operations_service import RegistryOperationsService
from src.domain.value_objects.registry_path import RegistryPath
from src.domain.value_objects.request_context import RequestContext

from .schemas import (
    DeleteKeyResponse,
    EnumerateKeysRequest,
    EnumerateKeysResponse,
    KeyExistsResponse,
    KeyInfoResponse,
    KeyPathRequest,
)

router = APIRouter()

Operations = Annotated[RegistryOperationsService, Depends(get_registry_operations)]
Context = Annotated[RequestContext, Depends(get_request_context)]


@router.post("/enumerate", response_model=EnumerateKeysResponse)
async def enumerate_keys(body: EnumerateKeysRequest, operations: Operations, context: Context):
    """List sub-keys, depth first, down to the depth the policy allows."""
    result = await operations.enumerate_keys(body.path, body.depth, context)
    return EnumerateKeysResponse(
        path=result.path,
        requested_depth=result.requested_depth,
        effective_depth=result.effective_depth,
        depth_reduced=result.depth_reduced,
        keys=result.keys,
        count=len(result.keys),
        correlation_id=context.correlation_id,
    )


@router.post("/info", response_model=KeyInfoResponse)
async def key_info(body: KeyPathRequest, operations: Operations, context: Context):
    """Describe a key: sub-key and value counts and names."""
    info = await operations.get_key_info(body.path, context)
    return KeyInfoResponse(
        path=info.path,
        name=info.name,
        subkey_count=info.subkey_count,
        value_count=info.value_count,
        last_write_time=info.last_write_time,
        subkeys=list(info.subkey_names),
        values=list(info.value_names),
        correlation_id=context.correlation_id,
    )


@router.post("/delete", response_model=DeleteKeyResponse)
async def delete_key(body: KeyPathRequest, operations: Operations, context: Context):
    """Delete a key and its whole subtree. Requires the admin tier."""
    result = await operations.delete_key(body.path, context)
    return DeleteKeyResponse(path=result.path, deleted=result.deleted, correlation_id=context.correlation_id)


@router.post("/exists", response_model=KeyExistsResponse)
async def key_exists(body: KeyPathRequest, operations: Operations, context: Context):
    """Report whether a key exists. Subject to the same policy as reads."""
    exists = await operations.key_exists(body.path, context)
    return KeyExistsResponse(
        path=RegistryPath.parse(body.path).normalize(),
        exists=exists,
        correlation_id=context.correlation_id,
    )
