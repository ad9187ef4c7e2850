import pytest
from fastapi.testclient import TestClient

from src.core.application import create_application
from src.core.config.settings import settings
from src.core.metrics import MetricsCollector
from src.domain.value_objects.access_tier import AccessTier
from src.domain.value_objects.policy import AllowRule, PolicySet
from src.domain.value_objects.registry_limits import RegistryLimits
from src.domain.value_objects.registry_path import RegistryPath
from src.domain.value_objects.registry_value import RegistryValueType
from src.domain.value_objects.request_context import RequestContext
from src.infrastructure.dependency_injection.registry_dependencies import build_registry_components
from src.infrastructure.registry.memory_registry import InMemoryRegistryService


def make_context(tier: AccessTier = AccessTier.READ_ONLY, correlation_id: str = "req-test-00000001") -> RequestContext:
    return RequestContext(correlation_id=correlation_id, caller_tier=tier)


def make_policy(*rules, deny=()) -> PolicySet:
    """Build a policy from ``(path, tier, max_depth)`` tuples and deny path strings."""
    return PolicySet.from_rules(
        [AllowRule(RegistryPath.parse(p), tier, depth) for p, tier, depth in rules],
        [RegistryPath.parse(d) for d in deny],
        source="test",
    )


@pytest.fixture
def app_policy() -> PolicySet:
    """Policy used by the API tests."""
    return make_policy(
        ("HKCU\\Software\\App", AccessTier.ADMIN, 5),
        ("HKCU\\Software", AccessTier.READ_ONLY, 2),
        ("HKLM\\SOFTWARE\\Vendor", AccessTier.READ_WRITE, 3),
        deny=("HKLM\\SECURITY", "HKCU\\Software\\App\\Secrets"),
    )


@pytest.fixture
def memory_registry() -> InMemoryRegistryService:
    """In-memory registry seeded with a small tree."""
    registry = InMemoryRegistryService(RegistryLimits())
    registry.seed(
        {
            "HKCU\\Software\\App": {
                "Theme": ("dark", RegistryValueType.STRING),
                "Retries": (3, RegistryValueType.DWORD),
            },
            "HKCU\\Software\\App\\Plugins\\Spell": {
                "Enabled": (1, RegistryValueType.DWORD),
            },
            "HKCU\\Software\\App\\Plugins\\Grammar": {},
            "HKCU\\Software\\App\\Secrets": {"Token": ("s3cr3t", RegistryValueType.STRING)},
            "HKLM\\SOFTWARE\\Vendor\\Product": {"Version": ("1.2.3", RegistryValueType.STRING)},
        }
    )
    return registry


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def client_factory(app_policy, memory_registry):
    """Build a test client whose callers hold the given tier."""

    def factory(level: str = "ADMIN") -> TestClient:
        app = create_application()
        app.state.registry_components = build_registry_components(
            settings.model_copy(update={"AUTHORIZATION_LEVEL": level}),
            backend=memory_registry,
            policy=app_policy,
        )
        return TestClient(app)

    return factory


@pytest.fixture
def context_factory():
    return make_context


@pytest.fixture
def policy_factory():
    return make_policy
