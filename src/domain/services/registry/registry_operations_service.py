"""Registry Operations Domain Service.

This service is the caller-facing entry point for every registry operation.
For each call it:

1. Parses the raw path into a `RegistryPath` (malformed input is a
   validation fault, never a denial).
2. Asks the authorization engine for a decision and turns a `Deny` into an
   `AccessDeniedError` carrying only the reason and correlation id.
3. Runs the operation on the registry backend, passing the engine's
   effective depth for enumerations.
4. Records metrics and logs the outcome with the correlation id.

Nothing here is retried: a denial or a backend failure is final for the call.
"""

from typing import Any, Optional

import structlog

from src.core.exceptions import (
    AccessDeniedError,
    InvalidValueTypeError,
    KeyNotFoundError,
    ValueNotFoundError,
)
from src.core.metrics import MetricsCollector, metrics_collector
from src.domain.interfaces.authorization import IAuthorizationService
from src.domain.interfaces.registry import IRegistryService
from src.domain.value_objects.authorization_decision import AuthorizationDecision, Deny
from src.domain.value_objects.operation_results import (
    ClsidSearch,
    DeletionResult,
    KeyEnumerationResult,
    ValueListing,
    ValueReadResult,
)
from src.domain.value_objects.registry_path import RegistryHive, RegistryPath
from src.domain.value_objects.registry_value import (
    RegistryKeyInfo,
    RegistryValue,
    RegistryValueType,
    decode_value_data,
)
from src.domain.value_objects.request_context import RequestContext

logger = structlog.get_logger(__name__)

CLSID_ROOT = RegistryPath(RegistryHive.HKEY_CLASSES_ROOT, "CLSID")
DEFAULT_CLSID_RESULTS = 50
MAX_CLSID_RESULTS = 200


class RegistryOperationsService:
    """Parse, authorize, execute and measure registry operations."""

    def __init__(
        self,
        authorization: IAuthorizationService,
        registry: IRegistryService,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Initialize the operations service.

        Args:
            authorization: Engine deciding every operation
            registry: Backend executing permitted operations
            metrics: Collector for operation metrics; the global collector
                when omitted
        """
        self._authorization = authorization
        self._registry = registry
        self._metrics = metrics or metrics_collector

    async def read_value(self, raw_path: str, name: str, context: RequestContext) -> ValueReadResult:
        """Read one value. A missing key or value yields ``exists=False``."""
        with self._metrics.start_timer("read_value"):
            path = RegistryPath.parse(raw_path)
            self._enforce(self._authorization.authorize_read(path, context), context, path, "read_value")
            try:
                value = await self._registry.read_value(path, name, context)
            except (KeyNotFoundError, ValueNotFoundError) as e:
                logger.info(
                    "registry_value_not_found",
                    correlation_id=context.correlation_id,
                    path=path.normalize(),
                    value_name=name,
                    error_code=e.code,
                )
                return ValueReadResult(path.normalize(), name, exists=False)

            logger.info(
                "registry_value_read",
                correlation_id=context.correlation_id,
                path=path.normalize(),
                value_name=name,
                value_type=value.value_type.wire_name,
                size_bytes=value.size_bytes,
            )
            return ValueReadResult(path.normalize(), name, exists=True, value=value)

    async def write_value(
        self,
        raw_path: str,
        name: str,
        data: Any,
        value_type: str,
        context: RequestContext,
    ) -> RegistryValue:
        """Create or overwrite a value.

        Args:
            raw_path: Key path as supplied by the caller
            name: Value name ("" for the default value)
            data: Caller data, converted according to `value_type`
            value_type: Type name such as ``string`` or ``dword``
            context: Request context

        Returns:
            RegistryValue: The value as written

        Raises:
            InvalidPathError: If the path is malformed
            AccessDeniedError: If the engine denies the write
            InvalidValueTypeError: If the type is unknown or the data does not fit
            LimitExceededError: If the payload is too large
        """
        with self._metrics.start_timer("write_value"):
            path = RegistryPath.parse(raw_path)
            self._enforce(self._authorization.authorize_write(path, context), context, path, "write_value")

            kind = RegistryValueType.from_name(value_type)
            if kind is None:
                raise InvalidValueTypeError(f"Unsupported value type: {value_type}")
            payload = decode_value_data(data, kind)

            await self._registry.write_value(path, name, payload, kind, context)
            logger.info(
                "registry_value_written",
                correlation_id=context.correlation_id,
                path=path.normalize(),
                value_name=name,
                value_type=kind.wire_name,
            )
            return RegistryValue(name, payload, kind, path.normalize())

    async def delete_value(self, raw_path: str, name: str, context: RequestContext) -> DeletionResult:
        """Delete a value. A missing value is reported with ``deleted=False``."""
        with self._metrics.start_timer("delete_value"):
            path = RegistryPath.parse(raw_path)
            self._enforce(self._authorization.authorize_delete(path, context), context, path, "delete_value")
            try:
                await self._registry.delete_value(path, name, context)
            except (KeyNotFoundError, ValueNotFoundError):
                logger.info(
                    "registry_value_already_absent",
                    correlation_id=context.correlation_id,
                    path=path.normalize(),
                    value_name=name,
                )
                return DeletionResult(path.normalize(), deleted=False, name=name)

            logger.info(
                "registry_value_deleted",
                correlation_id=context.correlation_id,
                path=path.normalize(),
                value_name=name,
            )
            return DeletionResult(path.normalize(), deleted=True, name=name)

    async def enumerate_keys(
        self, raw_path: str, requested_depth: int, context: RequestContext
    ) -> KeyEnumerationResult:
        """List sub-keys down to the effective depth granted by the engine."""
        with self._metrics.start_timer("enumerate_keys"):
            path = RegistryPath.parse(raw_path)
            decision = self._authorization.authorize_enumerate(path, requested_depth, context)
            self._enforce(decision, context, path, "enumerate_keys")

            effective_depth = decision.effective_depth
            keys = await self._registry.enumerate_keys(path, effective_depth, context)
            logger.info(
                "registry_keys_enumerated",
                correlation_id=context.correlation_id,
                path=path.normalize(),
                requested_depth=requested_depth,
                effective_depth=effective_depth,
                key_count=len(keys),
            )
            return KeyEnumerationResult(path.normalize(), requested_depth, effective_depth, keys)

    async def enumerate_values(self, raw_path: str, context: RequestContext) -> ValueListing:
        with self._metrics.start_timer("enumerate_values"):
            path = RegistryPath.parse(raw_path)
            self._enforce(self._authorization.authorize_read(path, context), context, path, "enumerate_values")
            values = await self._registry.enumerate_values(path, context)
            logger.info(
                "registry_values_enumerated",
                correlation_id=context.correlation_id,
                path=path.normalize(),
                value_count=len(values),
            )
            return ValueListing(path.normalize(), values)

    async def get_key_info(self, raw_path: str, context: RequestContext) -> RegistryKeyInfo:
        with self._metrics.start_timer("get_key_info"):
            path = RegistryPath.parse(raw_path)
            self._enforce(self._authorization.authorize_read(path, context), context, path, "get_key_info")
            return await self._registry.get_key_info(path, context)

    async def delete_key(self, raw_path: str, context: RequestContext) -> DeletionResult:
        """Delete a key and its whole subtree."""
        with self._metrics.start_timer("delete_key"):
            path = RegistryPath.parse(raw_path)
            self._enforce(self._authorization.authorize_delete(path, context), context, path, "delete_key")
            await self._registry.delete_key(path, context)
            logger.info(
                "registry_key_deleted",
                correlation_id=context.correlation_id,
                path=path.normalize(),
            )
            return DeletionResult(path.normalize(), deleted=True)

    async def key_exists(self, raw_path: str, context: RequestContext) -> bool:
        with self._metrics.start_timer("key_exists"):
            path = RegistryPath.parse(raw_path)
            self._enforce(self._authorization.authorize_read(path, context), context, path, "key_exists")
            return await self._registry.key_exists(path, context)

    async def search_clsid(
        self, dll_filter: Optional[str], max_results: int, context: RequestContext
    ) -> ClsidSearch:
        """Find COM classes whose in-process server DLL matches `dll_filter`.

        The scan reads below ``HKEY_CLASSES_ROOT\\CLSID`` and is authorized as
        a read of that key. Matches whose ``InprocServer32`` key is itself
        denied are left out of the result.

        Args:
            dll_filter: Case-insensitive fragment of the DLL path; blank or
                None returns every registered server
            max_results: Most matches to return; values below 1 mean the
                default of 50, and anything above 200 is capped
            context: Request context

        Returns:
            ClsidSearch: The normalized filter, the applied limit and the matches
        """
        with self._metrics.start_timer("search_clsid"):
            limit = min(max_results if max_results > 0 else DEFAULT_CLSID_RESULTS, MAX_CLSID_RESULTS)
            needle = dll_filter.strip() if dll_filter and dll_filter.strip() else None
            self._enforce(
                self._authorization.authorize_read(CLSID_ROOT, context), context, CLSID_ROOT, "search_clsid"
            )

            matches = await self._registry.find_inproc_servers(CLSID_ROOT, needle, limit, context)
            results = [
                match
                for match in matches
                if self._authorization.authorize_read(RegistryPath.parse(match.registry_path), context).allowed
            ]
            logger.info(
                "clsid_search_completed",
                correlation_id=context.correlation_id,
                dll_filter=needle or "none",
                max_results=limit,
                result_count=len(results),
                withheld=len(matches) - len(results),
            )
            return ClsidSearch(needle, limit, results)

    def _enforce(
        self,
        decision: AuthorizationDecision,
        context: RequestContext,
        path: RegistryPath,
        operation: str,
    ) -> None:
        if isinstance(decision, Deny):
            self._metrics.record_denial(decision.reason.value)
            logger.warning(
                "registry_operation_denied",
                correlation_id=context.correlation_id,
                operation=operation,
                path=path.normalize(),
                reason=decision.reason.value,
            )
            raise AccessDeniedError(decision.reason, context.correlation_id)
