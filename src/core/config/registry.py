"""
Registry access settings: caller tier, policy file, backend and limits.
"""
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class RegistrySettings(BaseSettings):
    """
    Settings that govern what callers may do with the registry.

    AUTHORIZATION_LEVEL is the tier granted to every caller of this process
    (READ_ONLY, READ_WRITE or ADMIN); unknown spellings fall back to
    READ_ONLY when the service is composed. ALLOWED_PATHS_FILE points to the
    JSON policy; when unset or unusable the built-in policy applies.

    REGISTRY_BACKEND selects the store: "windows" uses the native registry,
    "memory" an in-process tree and "auto" picks native on Windows.
    """
    AUTHORIZATION_LEVEL: str = "READ_ONLY"
    ALLOWED_PATHS_FILE: Optional[str] = None
    REGISTRY_BACKEND: Literal["auto", "windows", "memory"] = "auto"

    MAX_ENUMERATION_DEPTH: int = Field(ge=1, le=10, default=3)
    MAX_VALUES_PER_QUERY: int = Field(ge=1, default=100)
    MAX_VALUE_SIZE_BYTES: int = Field(ge=1, default=1024 * 1024)
    OPERATION_TIMEOUT_MS: int = Field(ge=1, default=5000)
    RATE_LIMIT_PER_MINUTE: int = Field(ge=1, default=100)
    RATE_LIMIT_ENABLED: bool = True

    @field_validator("ALLOWED_PATHS_FILE", mode="before")
    @classmethod
    def blank_as_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treats an empty ALLOWED_PATHS_FILE as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("REGISTRY_BACKEND", mode="before")
    @classmethod
    def lowercase_backend(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v
