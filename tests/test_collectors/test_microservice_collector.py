"""
Tests for MicroserviceCollector.

Проверяет политику ошибок и кэширование:
- offline_mode не ходит в реестр
- TransportError -> пустой результат, не кэшируется
- UnknownStageError и MalformedDocumentError пробрасываются
- Один запрос в реестр на stage
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from registry_collector.collectors import MicroserviceCollector
from registry_collector.core.cache import StageCache
from registry_collector.core.config_schema import validate_config
from registry_collector.core.exceptions import (
    MalformedDocumentError,
    TransportError,
    UnknownStageError,
)
from registry_collector.core.models import Microservice
from registry_collector.core.stages import StageRegistry
from registry_collector.registry.client import RegistryClient


@pytest.fixture
def collector(stage_urls, mock_registry_client):
    return MicroserviceCollector(
        stages=StageRegistry(stage_urls),
        client=mock_registry_client,
    )


@pytest.mark.unit
class TestCollectorBasic:

    def test_get_all_microservices(self, collector, mock_registry_client):
        services = collector.get_all_microservices("qa")

        assert set(services) == {"BILLING", "INVENTORY"}
        assert isinstance(services["BILLING"], Microservice)
        mock_registry_client.fetch.assert_called_once_with("http://eureka-qa:8761/eureka/apps")

    def test_stage_names(self, collector, mock_registry_client):
        assert collector.get_all_stage_names() == {"dev", "qa", "prod"}
        mock_registry_client.fetch.assert_not_called()

    def test_unknown_stage(self, collector, mock_registry_client):
        with pytest.raises(UnknownStageError) as exc_info:
            collector.get_all_microservices("nosuchstage")

        assert exc_info.value.stage == "nosuchstage"
        mock_registry_client.fetch.assert_not_called()

    def test_empty_registry(self, collector, mock_registry_client):
        mock_registry_client.fetch.return_value = {}

        assert collector.get_all_microservices("qa") == {}

    def test_malformed_document_propagates(self, collector, mock_registry_client):
        mock_registry_client.fetch.return_value = {
            "applications": {"application": [{"name": "BROKEN", "instance": []}]},
        }

        with pytest.raises(MalformedDocumentError):
            collector.get_all_microservices("qa")

        assert "qa" not in collector.cache


@pytest.mark.unit
class TestCollectorOffline:
    """offline_mode: пустой результат без сети."""

    @pytest.mark.parametrize("stage", ["qa", "nosuchstage"])
    def test_offline_returns_empty(self, stage_urls, mock_registry_client, stage):
        collector = MicroserviceCollector(
            stages=StageRegistry(stage_urls),
            client=mock_registry_client,
            offline_mode=True,
        )

        assert collector.get_all_microservices(stage) == {}
        mock_registry_client.fetch.assert_not_called()
        assert collector.cache.stages() == set()

    def test_offline_stage_names_still_available(self, stage_urls, mock_registry_client):
        collector = MicroserviceCollector(
            stages=StageRegistry(stage_urls),
            client=mock_registry_client,
            offline_mode=True,
        )

        assert collector.get_all_stage_names() == {"dev", "qa", "prod"}


@pytest.mark.unit
class TestCollectorTransportErrors:
    """Недоступный реестр: warning в лог и пустой результат."""

    def test_transport_error_returns_empty(self, collector, mock_registry_client):
        mock_registry_client.fetch.side_effect = TransportError("down", url="http://eureka-qa")

        assert collector.get_all_microservices("qa") == {}

    def test_transport_error_not_cached(self, collector, mock_registry_client, registry_payload):
        mock_registry_client.fetch.side_effect = [
            TransportError("down", status_code=503),
            registry_payload,
        ]

        assert collector.get_all_microservices("qa") == {}
        assert "qa" not in collector.cache

        services = collector.get_all_microservices("qa")
        assert set(services) == {"BILLING", "INVENTORY"}
        assert mock_registry_client.fetch.call_count == 2

    def test_transport_error_logged(self, collector, mock_registry_client, caplog):
        mock_registry_client.fetch.side_effect = TransportError("down", status_code=503)

        with caplog.at_level("WARNING"):
            collector.get_all_microservices("prod")

        records = [r for r in caplog.records if r.levelname == "WARNING"]
        assert records
        assert records[-1].stage == "prod"
        assert records[-1].status_code == 503


@pytest.mark.unit
class TestCollectorCaching:
    """Один запрос в реестр на stage за время жизни кэша."""

    def test_result_is_memoized(
        self, collector, mock_registry_client, make_registry_payload, application_factory, instance_factory
    ):
        mock_registry_client.fetch.side_effect = [
            make_registry_payload([application_factory("FIRST", [instance_factory()])]),
            make_registry_payload([application_factory("SECOND", [instance_factory()])]),
        ]

        first = collector.get_all_microservices("qa")
        second = collector.get_all_microservices("qa")

        assert set(first) == {"FIRST"}
        assert second == first
        assert mock_registry_client.fetch.call_count == 1

    def test_stages_cached_independently(self, collector, mock_registry_client):
        collector.get_all_microservices("qa")
        collector.get_all_microservices("prod")
        collector.get_all_microservices("qa")

        assert mock_registry_client.fetch.call_count == 2
        assert collector.cache.stages() == {"qa", "prod"}

    def test_empty_registry_is_cached(self, collector, mock_registry_client):
        mock_registry_client.fetch.return_value = {}

        collector.get_all_microservices("qa")
        collector.get_all_microservices("qa")

        assert mock_registry_client.fetch.call_count == 1

    def test_invalidate_forces_refetch(self, collector, mock_registry_client):
        collector.get_all_microservices("qa")
        collector.invalidate("qa")
        collector.get_all_microservices("qa")

        assert mock_registry_client.fetch.call_count == 2

    def test_ttl_from_cache(self, stage_urls, mock_registry_client):
        now = [0.0]
        collector = MicroserviceCollector(
            stages=StageRegistry(stage_urls),
            client=mock_registry_client,
            cache=StageCache(ttl=30, clock=lambda: now[0]),
        )

        collector.get_all_microservices("qa")
        now[0] = 31.0
        collector.get_all_microservices("qa")

        assert mock_registry_client.fetch.call_count == 2

    def test_concurrent_requests_single_fetch(self, stage_urls, registry_payload):
        """Параллельные запросы одного stage - один GET в реестр."""
        release = threading.Event()
        client = MagicMock(spec=RegistryClient)

        def slow_fetch(url):
            release.wait(timeout=5)
            return registry_payload

        client.fetch.side_effect = slow_fetch
        collector = MicroserviceCollector(stages=StageRegistry(stage_urls), client=client)

        with ThreadPoolExecutor(max_workers=6) as pool:
            futures = [pool.submit(collector.get_all_microservices, "qa") for _ in range(6)]
            threading.Event().wait(0.2)
            release.set()
            results = [f.result(timeout=5) for f in futures]

        assert client.fetch.call_count == 1
        assert all(set(r) == {"BILLING", "INVENTORY"} for r in results)


@pytest.mark.unit
class TestCollectorFromConfig:

    def test_from_config(self, stage_urls):
        app_config = validate_config({
            "registry": {"urls": stage_urls, "timeout": 7, "verify_ssl": False},
            "cache": {"ttl": 60},
            "development": {"offline_mode": True},
        })

        collector = MicroserviceCollector.from_config(app_config)

        assert collector.get_all_stage_names() == {"dev", "qa", "prod"}
        assert collector.client.timeout == 7
        assert collector.client.verify_ssl is False
        assert collector.cache.ttl == 60
        assert collector.offline_mode is True


@pytest.mark.unit
class TestCollectorUnknownStages:
    """Неизвестные stage'и не оставляют следов в кэше."""

    def test_unknown_stages_do_not_grow_cache(self, collector, mock_registry_client):
        for i in range(200):
            with pytest.raises(UnknownStageError):
                collector.get_all_microservices(f"bogus-{i}")

        assert collector.cache._key_locks == {}
        assert collector.cache.stages() == set()
        mock_registry_client.fetch.assert_not_called()

    def test_transport_error_logs_retryable(self, collector, mock_registry_client, caplog):
        mock_registry_client.fetch.side_effect = TransportError("down", status_code=503)

        with caplog.at_level("WARNING"):
            collector.get_all_microservices("qa")

        record = [r for r in caplog.records if r.levelname == "WARNING"][-1]
        assert record.retryable is True
        assert record.url == "http://eureka-qa:8761/eureka/apps"


@pytest.mark.unit
class TestCollectorRefreshDuringLoad:

    def test_invalidate_during_fetch_forces_refetch(self, stage_urls, registry_payload):
        """Сброс во время загрузки: следующий запрос снова идёт в реестр."""
        fetch_started = threading.Event()
        release = threading.Event()
        client = MagicMock(spec=RegistryClient)
        calls = []

        def fetch(url):
            calls.append(url)
            if len(calls) == 1:
                fetch_started.set()
                release.wait(timeout=5)
            return registry_payload

        client.fetch.side_effect = fetch
        collector = MicroserviceCollector(stages=StageRegistry(stage_urls), client=client)

        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(collector.get_all_microservices, "qa")
            assert fetch_started.wait(timeout=5)
            collector.invalidate("qa")
            release.set()
            assert set(future.result(timeout=5)) == {"BILLING", "INVENTORY"}

        collector.get_all_microservices("qa")

        assert len(calls) == 2


@pytest.mark.unit
class TestCollectorCaBundle:

    def test_ca_bundle_path_passed_to_session(self, stage_urls):
        app_config = validate_config({
            "registry": {"urls": stage_urls, "verify_ssl": "/etc/ssl/certs/corp-ca.pem"},
        })

        collector = MicroserviceCollector.from_config(app_config)

        assert collector.client.verify_ssl == "/etc/ssl/certs/corp-ca.pem"
        assert collector.client._session.verify == "/etc/ssl/certs/corp-ca.pem"
