"""Registry API Request and Response Schemas

This module defines Pydantic schemas for the registry endpoints. Requests
carry raw, caller-supplied paths; parsing and authorization happen in the
operations service, not here.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from src.domain.value_objects.registry_value import RegistryValue


class KeyPathRequest(BaseModel):
    """Request schema naming a registry key."""

    path: str = Field(
        ...,
        description="Registry key path, e.g. HKCU\\Software\\Vendor",
        min_length=1,
        max_length=2048,
    )


class ValueRequest(KeyPathRequest):
    """Request schema naming a value under a key."""

    name: str = Field("", description="Value name; empty for the default value", max_length=16383)


class WriteValueRequest(ValueRequest):
    """Request schema for creating or overwriting a value."""

    data: Union[str, int, List[str]] = Field(
        ...,
        description=(
            "Value data: text, an integer (or integer string) for dword/qword, "
            "base64 for binary, a list or newline separated text for multi_string"
        ),
    )
    value_type: str = Field(
        "string",
        description="One of string, expand_string, binary, dword, qword, multi_string",
    )


class EnumerateKeysRequest(KeyPathRequest):
    """Request schema for listing sub-keys."""

    depth: int = Field(1, description="Levels to descend; may be reduced by policy", ge=1, le=100)


class RegistryValueModel(BaseModel):
    """A registry value rendered for transport."""

    name: str
    value_type: str
    data: str = Field(..., description="Data as text; binary is base64, multi_string newline separated")
    size_bytes: int
    key_path: str

    @classmethod
    def from_value(cls, value: RegistryValue) -> "RegistryValueModel":
        return cls(
            name=value.name,
            value_type=value.value_type.wire_name,
            data=value.data_as_string(),
            size_bytes=value.size_bytes,
            key_path=value.key_path,
        )


class ReadValueResponse(BaseModel):
    path: str
    name: str
    exists: bool
    value: Optional[RegistryValueModel] = None
    correlation_id: str


class WriteValueResponse(BaseModel):
    path: str
    name: str
    value_type: str
    size_bytes: int
    correlation_id: str


class DeleteValueResponse(BaseModel):
    path: str
    name: str
    deleted: bool
    message: str
    correlation_id: str


class ListValuesResponse(BaseModel):
    path: str
    values: List[RegistryValueModel]
    count: int
    correlation_id: str


class EnumerateKeysResponse(BaseModel):
    """Response schema for key enumeration."""

    path: str
    requested_depth: int
    effective_depth: int = Field(..., description="Depth actually used after policy limits")
    depth_reduced: bool
    keys: List[str] = Field(..., description="Sub-key paths relative to the requested key")
    count: int
    correlation_id: str


class KeyInfoResponse(BaseModel):
    path: str
    name: str
    subkey_count: int
    value_count: int
    last_write_time: Optional[datetime] = None
    subkeys: List[str]
    values: List[str]
    correlation_id: str


class DeleteKeyResponse(BaseModel):
    path: str
    deleted: bool
    correlation_id: str


class KeyExistsResponse(BaseModel):
    path: str
    exists: bool
    correlation_id: str


class ClsidSearchRequest(BaseModel):
    """Request schema for the COM class search."""

    dll_filter: Optional[str] = Field(
        None,
        description="Case-insensitive fragment of the DLL path, e.g. shell32.dll; empty for all",
        max_length=260,
    )
    max_results: int = Field(50, description="Most matches to return; below 1 means 50, capped at 200")


class ClsidSearchResultModel(BaseModel):
    clsid: str
    dll_path: str
    registry_path: str


class ClsidSearchResponse(BaseModel):
    dll_filter: Optional[str] = None
    max_results: int = Field(..., description="Limit actually applied")
    results: List[ClsidSearchResultModel]
    count: int
    correlation_id: str
