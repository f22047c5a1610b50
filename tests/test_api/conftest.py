"""Fixtures для API тестов.

Коллектор подменяется через dependency_overrides: реестр замокан,
сеть не используется.

Требует: pip install fastapi uvicorn httpx
"""

import pytest

# Skip all API tests if fastapi not installed
pytest.importorskip("fastapi", reason="fastapi not installed, skipping API tests")

from fastapi.testclient import TestClient

from registry_collector.api.main import app
from registry_collector.api.services import get_collector
from registry_collector.collectors import MicroserviceCollector
from registry_collector.core.stages import StageRegistry


@pytest.fixture
def collector(stage_urls, mock_registry_client):
    """Коллектор с замоканным клиентом реестра."""
    return MicroserviceCollector(
        stages=StageRegistry(stage_urls),
        client=mock_registry_client,
    )


@pytest.fixture
def client(collector):
    """TestClient для API."""
    app.dependency_overrides[get_collector] = lambda: collector
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
