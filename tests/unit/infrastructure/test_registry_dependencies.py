import json
import sys

import pytest

from src.core.config.settings import settings
from src.domain.value_objects.access_tier import AccessTier
from src.domain.value_objects.policy import PolicySet
from src.infrastructure.dependency_injection.registry_dependencies import (
    build_registry_components,
    create_registry_backend,
    resolve_caller_tier,
)
from src.infrastructure.registry.memory_registry import InMemoryRegistryService
from src.infrastructure.registry.windows_registry import WindowsRegistryService, filetime_to_datetime


def configured(**overrides):
    values = {"REGISTRY_BACKEND": "memory", "ALLOWED_PATHS_FILE": None}
    values.update(overrides)
    return settings.model_copy(update=values)


class TestCallerTier:
    @pytest.mark.parametrize(
        "level,expected",
        [
            ("READ_ONLY", AccessTier.READ_ONLY),
            ("ReadWrite", AccessTier.READ_WRITE),
            ("admin", AccessTier.ADMIN),
            ("root", AccessTier.READ_ONLY),
            (None, AccessTier.READ_ONLY),
        ],
    )
    def test_resolves_configured_level(self, level, expected):
        assert resolve_caller_tier(level) is expected


class TestBackendSelection:
    def test_memory_backend(self):
        assert isinstance(create_registry_backend("memory", None), InMemoryRegistryService)

    @pytest.mark.skipif(sys.platform == "win32", reason="native registry present")
    def test_auto_falls_back_to_memory_off_windows(self):
        assert isinstance(create_registry_backend("auto", None), InMemoryRegistryService)

    @pytest.mark.skipif(sys.platform == "win32", reason="native registry present")
    def test_windows_backend_requires_windows(self):
        with pytest.raises(RuntimeError):
            create_registry_backend("windows", None)

    def test_filetime_conversion(self):
        assert filetime_to_datetime(0) is None
        assert filetime_to_datetime(116444736000000000).year == 1970
        assert WindowsRegistryService.backend_name == "windows"


class TestBuildComponents:
    def test_builds_from_settings(self, tmp_path):
        policy_file = tmp_path / "policy.json"
        policy_file.write_text(
            json.dumps({"allowedRoots": [{"path": "HKCU\\Software", "access": "admin", "maxDepth": 6}]}),
            encoding="utf-8",
        )

        components = build_registry_components(
            configured(
                AUTHORIZATION_LEVEL="read_write",
                ALLOWED_PATHS_FILE=str(policy_file),
                MAX_ENUMERATION_DEPTH=2,
                MAX_VALUES_PER_QUERY=7,
            )
        )

        assert components.caller_tier is AccessTier.READ_WRITE
        assert components.policy.source == str(policy_file)
        assert components.policy.allow_rules[0].tier is AccessTier.ADMIN
        assert components.authorization.global_max_depth == 2
        assert components.limits.max_values_per_query == 7
        assert components.backend.limits.max_values_per_query == 7
        assert components.backend_name == "memory"

    def test_missing_policy_file_uses_default_policy(self, tmp_path):
        components = build_registry_components(
            configured(AUTHORIZATION_LEVEL="READ_ONLY", ALLOWED_PATHS_FILE=str(tmp_path / "missing.json"))
        )
        assert components.policy == PolicySet.default()
        assert components.caller_tier is AccessTier.READ_ONLY

    def test_explicit_backend_and_policy_win(self, memory_registry, app_policy):
        components = build_registry_components(configured(), backend=memory_registry, policy=app_policy)
        assert components.backend is memory_registry
        assert components.policy is app_policy
        assert components.authorization.policy is app_policy
