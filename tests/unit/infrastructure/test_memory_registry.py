import time

import pytest

from src.core.exceptions import (
    InvalidPathError,
    InvalidValueTypeError,
    KeyNotFoundError,
    LimitExceededError,
    OperationCancelledError,
    OperationTimeoutError,
    ValueNotFoundError,
)
from src.domain.value_objects.registry_limits import RegistryLimits
from src.domain.value_objects.registry_path import RegistryPath
from src.domain.value_objects.registry_value import RegistryValueType
from src.infrastructure.registry.memory_registry import InMemoryRegistryService


def p(raw):
    return RegistryPath.parse(raw)


@pytest.fixture
def ctx(context_factory):
    return context_factory()


class SlowRegistry(InMemoryRegistryService):
    def _key_exists(self, path):
        time.sleep(0.3)
        return super()._key_exists(path)


class TestValues:
    @pytest.mark.asyncio
    async def test_names_are_case_insensitive_and_case_preserving(self, memory_registry, ctx):
        value = await memory_registry.read_value(p("HKCU\\SOFTWARE\\app"), "THEME", ctx)
        assert value.name == "Theme"
        assert value.data == "dark"
        assert value.key_path == "HKEY_CURRENT_USER\\SOFTWARE\\app"

    @pytest.mark.asyncio
    async def test_expanding_upper_case_keeps_keys_and_values_apart(self, ctx):
        registry = InMemoryRegistryService()
        await registry.write_value(p("HKCU\\Software\\Straße"), "Maß", "sharp", RegistryValueType.STRING, ctx)
        await registry.write_value(p("HKCU\\Software\\Strasse"), "MASS", "plain", RegistryValueType.STRING, ctx)
        await registry.write_value(p("HKCU\\Software\\Straße"), "MASS", "other", RegistryValueType.STRING, ctx)

        assert (await registry.read_value(p("HKCU\\Software\\STRAßE"), "maß", ctx)).data == "sharp"
        assert (await registry.read_value(p("HKCU\\Software\\STRASSE"), "mass", ctx)).data == "plain"
        assert (await registry.read_value(p("HKCU\\Software\\Straße"), "mass", ctx)).data == "other"
        assert sorted(await registry.enumerate_keys(p("HKCU\\Software"), 1, ctx)) == ["Strasse", "Straße"]

    @pytest.mark.asyncio
    async def test_overwrite_replaces_type_and_data(self, memory_registry, ctx):
        path = p("HKCU\\Software\\App")
        await memory_registry.write_value(path, "Theme", b"\x00\x01", RegistryValueType.BINARY, ctx)
        value = await memory_registry.read_value(path, "theme", ctx)
        assert value.value_type is RegistryValueType.BINARY
        assert value.data == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_default_value_has_empty_name(self, memory_registry, ctx):
        path = p("HKCU\\Software\\App")
        await memory_registry.write_value(path, "", "default", RegistryValueType.STRING, ctx)
        assert (await memory_registry.read_value(path, "", ctx)).data == "default"

    @pytest.mark.asyncio
    async def test_missing_value_and_key(self, memory_registry, ctx):
        with pytest.raises(ValueNotFoundError):
            await memory_registry.read_value(p("HKCU\\Software\\App"), "Nope", ctx)
        with pytest.raises(KeyNotFoundError):
            await memory_registry.read_value(p("HKCU\\Software\\Nope"), "Theme", ctx)
        with pytest.raises(ValueNotFoundError):
            await memory_registry.delete_value(p("HKCU\\Software\\App"), "Nope", ctx)

    @pytest.mark.asyncio
    async def test_value_size_limit_on_write(self, ctx):
        registry = InMemoryRegistryService(RegistryLimits(max_value_size_bytes=8))
        with pytest.raises(LimitExceededError) as exc_info:
            await registry.write_value(p("HKCU\\A"), "big", b"\x00" * 9, RegistryValueType.BINARY, ctx)
        assert exc_info.value.limit_type == "value_size"
        assert not await registry.key_exists(p("HKCU\\A"), ctx)

    @pytest.mark.asyncio
    async def test_value_size_limit_on_read(self, ctx):
        registry = InMemoryRegistryService(RegistryLimits(max_value_size_bytes=8))
        registry.set_value(p("HKCU\\A"), "big", "0123456789", RegistryValueType.STRING)
        with pytest.raises(LimitExceededError):
            await registry.read_value(p("HKCU\\A"), "big", ctx)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data,value_type",
        [
            (-1, RegistryValueType.DWORD),
            (2 ** 64, RegistryValueType.QWORD),
            ("1", RegistryValueType.DWORD),
            ("text", RegistryValueType.BINARY),
            (None, RegistryValueType.NONE),
        ],
    )
    async def test_payload_must_match_type(self, memory_registry, ctx, data, value_type):
        with pytest.raises(InvalidValueTypeError):
            await memory_registry.write_value(p("HKCU\\Software\\App"), "X", data, value_type, ctx)


class TestKeys:
    @pytest.mark.asyncio
    async def test_enumerate_depth(self, memory_registry, ctx):
        root = p("HKCU\\Software")
        assert await memory_registry.enumerate_keys(root, 1, ctx) == ["App"]
        assert await memory_registry.enumerate_keys(root, 2, ctx) == ["App", "App\\Plugins", "App\\Secrets"]

    @pytest.mark.asyncio
    async def test_enumerate_key_count_limit(self, ctx):
        registry = InMemoryRegistryService(RegistryLimits(max_values_per_query=2))
        for name in ("A", "B", "C"):
            registry.create_key(p(f"HKCU\\Root\\{name}"))
        with pytest.raises(LimitExceededError) as exc_info:
            await registry.enumerate_keys(p("HKCU\\Root"), 1, ctx)
        assert exc_info.value.limit_type == "key_count"
        assert exc_info.value.maximum == 2

    @pytest.mark.asyncio
    async def test_enumerate_value_count_limit(self, ctx):
        registry = InMemoryRegistryService(RegistryLimits(max_values_per_query=2))
        for name in ("A", "B", "C"):
            registry.set_value(p("HKCU\\Root"), name, name)
        with pytest.raises(LimitExceededError) as exc_info:
            await registry.enumerate_values(p("HKCU\\Root"), ctx)
        assert exc_info.value.limit_type == "value_count"
        assert exc_info.value.requested == 3

    @pytest.mark.asyncio
    async def test_key_info(self, memory_registry, ctx):
        info = await memory_registry.get_key_info(p("hkcu\\software\\app"), ctx)
        assert info.name == "app"
        assert info.subkey_names == ("Plugins", "Secrets")
        assert info.value_names == ("Theme", "Retries")
        assert info.value_count == 2
        assert info.last_write_time.tzinfo is not None

    @pytest.mark.asyncio
    async def test_hive_roots_always_exist(self, ctx):
        registry = InMemoryRegistryService()
        for hive in ("HKLM", "HKCU", "HKCR", "HKU", "HKCC"):
            assert await registry.key_exists(p(hive), ctx)

    @pytest.mark.asyncio
    async def test_delete_key_removes_subtree(self, memory_registry, ctx):
        await memory_registry.delete_key(p("HKCU\\Software\\App\\plugins"), ctx)
        assert not await memory_registry.key_exists(p("HKCU\\Software\\App\\Plugins\\Spell"), ctx)
        assert await memory_registry.key_exists(p("HKCU\\Software\\App"), ctx)

    @pytest.mark.asyncio
    async def test_cannot_delete_hive_root(self, memory_registry, ctx):
        with pytest.raises(InvalidPathError):
            await memory_registry.delete_key(p("HKCU"), ctx)

    @pytest.mark.asyncio
    async def test_delete_missing_key(self, memory_registry, ctx):
        with pytest.raises(KeyNotFoundError):
            await memory_registry.delete_key(p("HKCU\\Software\\Ghost"), ctx)


class TestExecution:
    @pytest.mark.asyncio
    async def test_cancelled_context_does_not_run(self, memory_registry, ctx):
        ctx.cancellation.cancel()
        with pytest.raises(OperationCancelledError):
            await memory_registry.key_exists(p("HKCU\\Software"), ctx)

    @pytest.mark.asyncio
    async def test_timeout_cancels_the_request(self, ctx):
        registry = SlowRegistry(RegistryLimits(operation_timeout_ms=50))
        with pytest.raises(OperationTimeoutError) as exc_info:
            await registry.key_exists(p("HKCU\\Software"), ctx)
        assert exc_info.value.code == "operation_timeout"
        assert exc_info.value.timeout_ms == 50
        assert ctx.cancellation.is_cancelled
