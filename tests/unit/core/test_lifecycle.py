import sys

import pytest
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from src.core.application import create_application
from src.domain.value_objects.policy import PolicySet


@pytest.mark.skipif(sys.platform == "win32", reason="uses the in-memory backend")
def test_lifespan_builds_components(monkeypatch):
    from src.core.config.settings import settings

    monkeypatch.setattr(settings, "ALLOWED_PATHS_FILE", None)
    monkeypatch.setattr(settings, "REGISTRY_BACKEND", "memory")
    app = create_application()

    with capture_logs() as logs:
        with TestClient(app) as client:
            components = app.state.registry_components
            assert components.policy == PolicySet.default()
            assert components.backend_name == "memory"
            assert client.get("/api/v1/health/").json()["policy"]["source"] == "default"

    events = [entry["event"] for entry in logs]
    assert "application_startup" in events
    assert "application_shutdown" in events


def test_lifespan_keeps_prebuilt_components(client_factory):
    client = client_factory("READ_ONLY")
    with client:
        assert client.app.state.registry_components.policy.source == "test"
