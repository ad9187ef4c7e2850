"""Registry Value Endpoints

Read, write, delete and list the named values of a registry key. Every call
is authorized against the access policy before the registry is touched; a
denial always answers `403` with the same body apart from its reason code.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.core.dependencies.registry import get_registry_operations, get_request_context
from src.domain.services.registry.registry_operations_service import RegistryOperationsService
from src.domain.value_objects.request_context import RequestContext

from .schemas import (
    DeleteValueResponse,
    KeyPathRequest,
    ListValuesResponse,
    ReadValueResponse,
    RegistryValueModel,
    ValueRequest,
    WriteValueRequest,
    WriteValueResponse,
)

router = APIRouter()

Operations = Annotated[RegistryOperationsService, Depends(get_registry_operations)]
Context = Annotated[RequestContext, Depends(get_request_context)]


@router.post("/read", response_model=ReadValueResponse)
async def read_value(body: ValueRequest, operations: Operations, context: Context):
    """Read a value.

    A missing key or value is not an error: the response reports
    ``exists: false``.
    """
    result = await operations.read_value(body.path, body.name, context)
    return ReadValueResponse(
        path=result.path,
        name=result.name,
        exists=result.exists,
        value=RegistryValueModel.from_value(result.value) if result.value else None,
        correlation_id=context.correlation_id,
    )


@router.post("/write", response_model=WriteValueResponse)
async def write_value(body: WriteValueRequest, operations: Operations, context: Context):
    """Create or overwrite a value. Requires the read_write tier."""
    value = await operations.write_value(body.path, body.name, body.data, body.value_type, context)
    return WriteValueResponse(
        path=value.key_path,
        name=value.name,
        value_type=value.value_type.wire_name,
        size_bytes=value.size_bytes,
        correlation_id=context.correlation_id,
    )


@router.post("/delete", response_model=DeleteValueResponse)
async def delete_value(body: ValueRequest, operations: Operations, context: Context):
    """Delete a value. Requires the admin tier.

    Deleting a value that does not exist succeeds with ``deleted: false``.
    """
    result = await operations.delete_value(body.path, body.name, context)
    message = "Value deleted" if result.deleted else "Value did not exist; nothing was deleted"
    return DeleteValueResponse(
        path=result.path,
        name=body.name,
        deleted=result.deleted,
        message=message,
        correlation_id=context.correlation_id,
    )


@router.post("/list", response_model=ListValuesResponse)
async def list_values(body: KeyPathRequest, operations: Operations, context: Context):
    """List every value held by a key."""
    listing = await operations.enumerate_values(body.path, context)
    return ListValuesResponse(
        path=listing.path,
        values=[RegistryValueModel.from_value(v) for v in listing.values],
        count=len(listing.values),
        correlation_id=context.correlation_id,
    )
