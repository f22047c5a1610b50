"""
Pytest configuration и общие fixtures для тестов.

Предоставляет переиспользуемые fixtures:
- registry_payload: Пример ответа реестра (Eureka JSON)
- make_application / make_instance: Построители элементов документа
- mock_registry_client: Mock RegistryClient
- app_config: Валидированная конфигурация с тремя stage'ами
"""

import copy
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from registry_collector.core.config_schema import validate_config
from registry_collector.registry.client import RegistryClient


def make_instance(
    host_name: Optional[str] = "host-1",
    ip_addr: Optional[str] = "10.0.0.1",
    home_page_url: Optional[str] = "http://host-1:8080/",
    port: Optional[Dict[str, Any]] = None,
    secure_port: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Элемент массива instance в формате реестра."""
    instance: Dict[str, Any] = {}
    if host_name is not None:
        instance["hostName"] = host_name
    if ip_addr is not None:
        instance["ipAddr"] = ip_addr
    if home_page_url is not None:
        instance["homePageUrl"] = home_page_url
    instance["port"] = port if port is not None else {"$": 8080, "@enabled": "true"}
    instance["securePort"] = secure_port if secure_port is not None else {"$": 8443, "@enabled": "false"}
    instance["metadata"] = metadata if metadata is not None else {}
    return instance


def make_application(name: str, instances: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Элемент массива application в формате реестра."""
    return {"name": name, "instance": instances}


def make_payload(applications: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Документ реестра целиком."""
    return {
        "applications": {
            "versions__delta": "1",
            "apps__hashcode": "UP_2_",
            "application": applications,
        }
    }


@pytest.fixture
def registry_payload() -> Dict[str, Any]:
    """
    Пример ответа реестра с двумя приложениями.

    BILLING: два instance, consumes и metadata.
    INVENTORY: один instance, без metadata, оба порта включены.
    """
    return make_payload([
        make_application("BILLING", [
            make_instance(
                host_name="billing-1",
                ip_addr="10.0.0.11",
                home_page_url="http://billing-1:8080/",
                metadata={
                    "description": "Billing service",
                    "bitbucketUrl": "https://bitbucket.local/billing",
                    "fdOwner": "team-payments",
                    "consumes": "inventory:rest,audit",
                    "secretInternalField": "hidden",
                },
            ),
            make_instance(
                host_name="billing-2",
                ip_addr="10.0.0.12",
                home_page_url="http://billing-2:8080/",
                metadata={"description": "Billing service (second node)"},
            ),
        ]),
        make_application("INVENTORY", [
            make_instance(
                host_name="inventory-1",
                ip_addr="10.0.0.21",
                home_page_url=None,
                port={"$": 9000, "@enabled": "true"},
                secure_port={"$": 9443, "@enabled": "true"},
            ),
        ]),
    ])


@pytest.fixture
def make_registry_payload():
    """Фабрика документов реестра (копия на каждый вызов)."""
    def _make(applications: List[Dict[str, Any]]) -> Dict[str, Any]:
        return copy.deepcopy(make_payload(applications))
    return _make


@pytest.fixture
def instance_factory():
    """Построитель элемента instance (см. make_instance)."""
    return make_instance


@pytest.fixture
def application_factory():
    """Построитель элемента application (см. make_application)."""
    return make_application


@pytest.fixture
def mock_registry_client(registry_payload):
    """
    Mock RegistryClient.

    Returns:
        MagicMock: fetch() возвращает registry_payload
    """
    client = MagicMock(spec=RegistryClient)
    client.fetch.return_value = registry_payload
    return client


@pytest.fixture
def stage_urls() -> Dict[str, str]:
    """Stage'и для тестов."""
    return {
        "dev": "http://eureka-dev:8761/eureka/apps",
        "qa": "http://eureka-qa:8761/eureka/apps",
        "prod": "http://eureka-prod:8761/eureka/apps",
    }


@pytest.fixture
def app_config(stage_urls):
    """Валидированная конфигурация с тремя stage'ами."""
    return validate_config({"registry": {"urls": stage_urls}})


def pytest_configure(config):
    """Регистрация custom markers для pytest."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (быстрые, без внешних зависимостей)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (несколько слоёв вместе, сеть замокана)"
    )
