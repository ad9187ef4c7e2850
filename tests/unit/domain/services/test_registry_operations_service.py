"""Tests for the registry operations service.

The service is exercised against the in-memory backend for the happy paths
and against mocks where the interaction itself matters (for example that a
denied call never reaches the backend).
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.exceptions import (
    AccessDeniedError,
    InvalidPathError,
    InvalidValueTypeError,
    KeyNotFoundError,
    LimitExceededError,
)
from src.domain.services.authorization.path_authorization_service import PathAuthorizationService
from src.domain.services.registry.registry_operations_service import RegistryOperationsService
from src.domain.value_objects.access_tier import AccessTier
from src.domain.value_objects.authorization_decision import DenialReason, Permit
from src.domain.value_objects.registry_limits import RegistryLimits
from src.domain.value_objects.registry_value import RegistryValueType
from src.infrastructure.registry.memory_registry import InMemoryRegistryService


@pytest.fixture
def service(app_policy, memory_registry, metrics):
    engine = PathAuthorizationService(app_policy, global_max_depth=3)
    return RegistryOperationsService(engine, memory_registry, metrics)


@pytest.fixture
def admin(context_factory):
    return context_factory(AccessTier.ADMIN, "req-ops-admin")


@pytest.fixture
def reader(context_factory):
    return context_factory(AccessTier.READ_ONLY, "req-ops-reader")


class TestReadValue:
    @pytest.mark.asyncio
    async def test_reads_existing_value(self, service, reader):
        result = await service.read_value("hkcu\\software\\app", "theme", reader)
        assert result.exists
        assert result.path == "HKEY_CURRENT_USER\\software\\app"
        assert result.value.data == "dark"
        assert result.value.name == "Theme"
        assert result.value.value_type is RegistryValueType.STRING

    @pytest.mark.asyncio
    async def test_missing_value_is_reported_not_raised(self, service, reader):
        result = await service.read_value("HKCU\\Software\\App", "Nope", reader)
        assert not result.exists
        assert result.value is None

    @pytest.mark.asyncio
    async def test_missing_key_is_reported_not_raised(self, service, reader):
        result = await service.read_value("HKCU\\Software\\App\\Missing", "Theme", reader)
        assert not result.exists

    @pytest.mark.asyncio
    async def test_denied_read_raises_without_touching_backend(self, app_policy, metrics, reader):
        backend = MagicMock()
        backend.read_value = AsyncMock()
        service = RegistryOperationsService(PathAuthorizationService(app_policy), backend, metrics)

        with pytest.raises(AccessDeniedError) as exc_info:
            await service.read_value("HKCU\\Software\\App\\Secrets", "Token", reader)

        error = exc_info.value
        assert error.reason is DenialReason.EXPLICITLY_DENIED
        assert error.correlation_id == "req-ops-reader"
        assert error.message == "Access not permitted"
        assert "Secrets" not in error.message
        backend.read_value.assert_not_awaited()
        assert metrics.get_metrics(include_system=False)["registry"]["denials"] == {
            "explicitly-denied": 1
        }

    @pytest.mark.asyncio
    async def test_invalid_path_is_not_authorized(self, metrics, reader):
        engine = MagicMock()
        backend = MagicMock()
        service = RegistryOperationsService(engine, backend, metrics)

        with pytest.raises(InvalidPathError):
            await service.read_value("NOTAHIVE\\Software", "x", reader)

        engine.authorize_read.assert_not_called()
        operations = metrics.get_metrics(include_system=False)["registry"]["operations"]
        assert operations["read_value"]["errors"] == {"invalid_path": 1}


class TestWriteValue:
    @pytest.mark.asyncio
    async def test_writes_and_reads_back(self, service, admin):
        written = await service.write_value("HKCU\\Software\\App", "Mask", "0x10", "dword", admin)
        assert written.data == 16
        assert written.value_type is RegistryValueType.DWORD

        result = await service.read_value("HKCU\\Software\\App", "MASK", admin)
        assert result.value.data == 16

    @pytest.mark.asyncio
    async def test_write_creates_missing_key(self, service, admin, memory_registry):
        await service.write_value("HKCU\\Software\\App\\New\\Leaf", "List", ["a", "b"], "multi_string", admin)
        assert await service.key_exists("HKCU\\Software\\App\\New\\Leaf", admin)

    @pytest.mark.asyncio
    async def test_unknown_value_type(self, service, admin):
        with pytest.raises(InvalidValueTypeError):
            await service.write_value("HKCU\\Software\\App", "X", "1", "float", admin)

    @pytest.mark.asyncio
    async def test_data_not_matching_type(self, service, admin):
        with pytest.raises(InvalidValueTypeError):
            await service.write_value("HKCU\\Software\\App", "X", "many", "dword", admin)

    @pytest.mark.asyncio
    async def test_dword_out_of_range(self, service, admin):
        with pytest.raises(InvalidValueTypeError):
            await service.write_value("HKCU\\Software\\App", "X", 2 ** 32, "dword", admin)

    @pytest.mark.asyncio
    async def test_read_only_rule_blocks_write(self, service, admin):
        with pytest.raises(AccessDeniedError) as exc_info:
            await service.write_value("HKCU\\Software\\Other", "X", "v", "string", admin)
        assert exc_info.value.reason is DenialReason.RULE_INSUFFICIENT_TIER

    @pytest.mark.asyncio
    async def test_read_only_caller_blocks_write(self, service, reader):
        with pytest.raises(AccessDeniedError) as exc_info:
            await service.write_value("HKCU\\Software\\App", "X", "v", "string", reader)
        assert exc_info.value.reason is DenialReason.INSUFFICIENT_CALLER_TIER


class TestDeleteValue:
    @pytest.mark.asyncio
    async def test_deletes_value(self, service, admin):
        result = await service.delete_value("HKCU\\Software\\App", "Retries", admin)
        assert result.deleted
        assert not (await service.read_value("HKCU\\Software\\App", "Retries", admin)).exists

    @pytest.mark.asyncio
    async def test_missing_value_is_not_an_error(self, service, admin):
        result = await service.delete_value("HKCU\\Software\\App", "Ghost", admin)
        assert not result.deleted
        assert result.name == "Ghost"

    @pytest.mark.asyncio
    async def test_read_write_rule_cannot_delete(self, service, context_factory):
        with pytest.raises(AccessDeniedError) as exc_info:
            await service.delete_value(
                "HKLM\\SOFTWARE\\Vendor\\Product", "Version", context_factory(AccessTier.ADMIN)
            )
        assert exc_info.value.reason is DenialReason.RULE_INSUFFICIENT_TIER


class TestEnumeration:
    @pytest.mark.asyncio
    async def test_direct_children(self, service, reader):
        result = await service.enumerate_keys("HKCU\\Software\\App", 1, reader)
        assert result.keys == ["Plugins", "Secrets"]
        assert result.effective_depth == 1
        assert not result.depth_reduced

    @pytest.mark.asyncio
    async def test_nested_relative_paths(self, service, reader):
        result = await service.enumerate_keys("HKCU\\Software\\App", 2, reader)
        assert result.keys == ["Plugins", "Plugins\\Spell", "Plugins\\Grammar", "Secrets"]

    @pytest.mark.asyncio
    async def test_backend_receives_effective_depth(self, app_policy, metrics, reader):
        backend = MagicMock()
        backend.enumerate_keys = AsyncMock(return_value=["Product"])
        service = RegistryOperationsService(
            PathAuthorizationService(app_policy, global_max_depth=10), backend, metrics
        )

        result = await service.enumerate_keys("HKLM\\SOFTWARE\\Vendor", 50, reader)

        assert result.requested_depth == 50
        assert result.effective_depth == 3
        assert result.depth_reduced
        path, depth, context = backend.enumerate_keys.await_args.args
        assert path.normalize() == "HKEY_LOCAL_MACHINE\\SOFTWARE\\Vendor"
        assert depth == 3
        assert context is reader

    @pytest.mark.asyncio
    async def test_missing_key(self, service, reader):
        with pytest.raises(KeyNotFoundError):
            await service.enumerate_keys("HKCU\\Software\\Nowhere", 1, reader)

    @pytest.mark.asyncio
    async def test_enumerate_values(self, service, reader):
        listing = await service.enumerate_values("HKCU\\Software\\App", reader)
        assert sorted(v.name for v in listing.values) == ["Retries", "Theme"]

    @pytest.mark.asyncio
    async def test_value_count_limit(self, app_policy, metrics, reader):
        backend = InMemoryRegistryService(RegistryLimits(max_values_per_query=2))
        backend.seed({"HKCU\\Software\\Big": {f"v{i}": (i, RegistryValueType.DWORD) for i in range(3)}})
        service = RegistryOperationsService(PathAuthorizationService(app_policy), backend, metrics)

        with pytest.raises(LimitExceededError) as exc_info:
            await service.enumerate_values("HKCU\\Software\\Big", reader)
        assert exc_info.value.limit_type == "value_count"


class TestKeys:
    @pytest.mark.asyncio
    async def test_key_info(self, service, reader):
        info = await service.get_key_info("HKCU\\Software\\App\\Plugins", reader)
        assert info.name == "Plugins"
        assert info.subkey_count == 2
        assert info.value_count == 0

    @pytest.mark.asyncio
    async def test_key_exists(self, service, reader):
        assert await service.key_exists("HKCU\\Software\\App\\Plugins\\Spell", reader)
        assert not await service.key_exists("HKCU\\Software\\App\\Plugins\\Ghost", reader)

    @pytest.mark.asyncio
    async def test_delete_key_removes_subtree(self, service, admin):
        result = await service.delete_key("HKCU\\Software\\App\\Plugins", admin)
        assert result.deleted
        assert not await service.key_exists("HKCU\\Software\\App\\Plugins\\Spell", admin)

    @pytest.mark.asyncio
    async def test_delete_missing_key(self, service, admin):
        with pytest.raises(KeyNotFoundError):
            await service.delete_key("HKCU\\Software\\App\\Ghost", admin)


SHELL = "{00021401-0000-0000-C000-000000000046}"
FOLDER = "{0E5AAE11-A475-4C5B-AB00-C66DE400274E}"
SCRIPT = "{72C24DD5-D70A-438B-8A42-98424B88AFB8}"


@pytest.fixture
def com_registry():
    registry = InMemoryRegistryService()
    registry.seed(
        {
            f"HKCR\\CLSID\\{SHELL}\\InprocServer32": {
                "": ("%SystemRoot%\\system32\\windows.storage.dll", RegistryValueType.EXPAND_STRING),
                "ThreadingModel": ("Apartment", RegistryValueType.STRING),
            },
            f"HKCR\\CLSID\\{FOLDER}\\InprocServer32": {
                "": ("C:\\Windows\\System32\\Shell32.dll", RegistryValueType.STRING),
            },
            f"HKCR\\CLSID\\{SCRIPT}\\InprocServer32": {
                "": ("C:\\Windows\\System32\\wshom.ocx", RegistryValueType.STRING),
            },
            "HKCR\\CLSID\\{NoServer}\\LocalServer32": {"": ("app.exe", RegistryValueType.STRING)},
            "HKCR\\CLSID\\{EmptyServer}\\InprocServer32": {},
        }
    )
    return registry


def clsid_service(policy, registry, metrics):
    return RegistryOperationsService(PathAuthorizationService(policy), registry, metrics)


class TestClsidSearch:
    @pytest.mark.asyncio
    async def test_lists_every_inproc_server_without_filter(self, policy_factory, com_registry, metrics, reader):
        service = clsid_service(policy_factory(("HKCR\\CLSID", AccessTier.READ_ONLY, 2)), com_registry, metrics)
        search = await service.search_clsid(None, 0, reader)
        assert search.dll_filter is None
        assert search.max_results == 50
        assert [r.clsid for r in search.results] == [SHELL, FOLDER, SCRIPT]
        assert search.results[0].dll_path == "%SystemRoot%\\system32\\windows.storage.dll"
        assert search.results[1].registry_path == f"HKEY_CLASSES_ROOT\\CLSID\\{FOLDER}\\InprocServer32"

    @pytest.mark.asyncio
    async def test_filter_is_case_insensitive(self, policy_factory, com_registry, metrics, reader):
        service = clsid_service(policy_factory(("HKCR\\CLSID", AccessTier.READ_ONLY, 2)), com_registry, metrics)
        search = await service.search_clsid("  SHELL32.DLL ", 50, reader)
        assert search.dll_filter == "SHELL32.DLL"
        assert [r.clsid for r in search.results] == [FOLDER]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("requested,applied", [(-5, 50), (1, 1), (200, 200), (1000, 200)])
    async def test_result_limit(self, policy_factory, com_registry, metrics, reader, requested, applied):
        service = clsid_service(policy_factory(("HKCR\\CLSID", AccessTier.READ_ONLY, 2)), com_registry, metrics)
        search = await service.search_clsid("", requested, reader)
        assert search.max_results == applied
        assert len(search.results) == min(applied, 3)

    @pytest.mark.asyncio
    async def test_requires_read_access_to_clsid_key(self, app_policy, metrics, reader):
        backend = MagicMock()
        backend.find_inproc_servers = AsyncMock()
        service = clsid_service(app_policy, backend, metrics)
        with pytest.raises(AccessDeniedError) as exc_info:
            await service.search_clsid(None, 50, reader)
        assert exc_info.value.reason is DenialReason.NOT_IN_ALLOW_LIST
        backend.find_inproc_servers.assert_not_called()

    @pytest.mark.asyncio
    async def test_denied_servers_are_withheld(self, policy_factory, com_registry, metrics, reader):
        policy = policy_factory(
            ("HKCR\\CLSID", AccessTier.READ_ONLY, 2), deny=(f"HKCR\\CLSID\\{FOLDER}",)
        )
        search = await clsid_service(policy, com_registry, metrics).search_clsid(None, 50, reader)
        assert [r.clsid for r in search.results] == [SHELL, SCRIPT]


class TestMetrics:
    @pytest.mark.asyncio
    async def test_successful_operation_is_recorded(self, service, reader, metrics):
        await service.key_exists("HKCU\\Software\\App", reader)
        entry = metrics.get_metrics(include_system=False)["registry"]["operations"]["key_exists"]
        assert entry["count"] == 1
        assert entry["success_count"] == 1
        assert entry["error_count"] == 0

    @pytest.mark.asyncio
    async def test_denial_is_recorded_as_error(self, service, reader, metrics):
        with pytest.raises(AccessDeniedError):
            await service.key_exists("HKLM\\SECURITY\\Policy", reader)
        snapshot = metrics.get_metrics(include_system=False)
        assert snapshot["registry"]["operations"]["key_exists"]["errors"] == {"access_not_permitted": 1}
        assert snapshot["registry"]["denials"] == {"explicitly-denied": 1}
        assert snapshot["registry"]["concurrent_operations"] == 0

    @pytest.mark.asyncio
    async def test_engine_decision_is_used_as_is(self, memory_registry, metrics, reader):
        engine = MagicMock()
        engine.authorize_read.return_value = Permit()
        service = RegistryOperationsService(engine, memory_registry, metrics)

        assert await service.key_exists("HKU\\.DEFAULT", reader) is False
        engine.authorize_read.assert_called_once()
