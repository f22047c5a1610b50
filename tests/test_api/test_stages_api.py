"""
Тесты Stages API.

Проверяет:
- Список stage'ей
- Микросервисы stage и одного сервиса
- Маппинг ошибок: неизвестный stage 404, битый документ 502
- Сброс кэша stage
"""

import pytest
from fastapi.testclient import TestClient

from registry_collector.api.main import app
from registry_collector.api.services import get_collector
from registry_collector.core.exceptions import TransportError


@pytest.mark.unit
class TestListStages:

    def test_list_stages(self, client, mock_registry_client):
        response = client.get("/api/stages")

        assert response.status_code == 200
        assert response.json() == {"stages": ["dev", "prod", "qa"]}
        mock_registry_client.fetch.assert_not_called()


@pytest.mark.unit
class TestMicroservices:

    def test_get_microservices(self, client):
        response = client.get("/api/stages/qa/microservices")

        assert response.status_code == 200
        data = response.json()
        assert data["stage"] == "qa"
        assert data["count"] == 2
        billing = data["microservices"]["BILLING"]
        assert billing["fdOwner"] == "team-payments"
        assert billing["consumes"] == [
            {"target": "INVENTORY", "type": "rest"},
            {"target": "AUDIT"},
        ]
        assert "secretInternalField" not in billing
        assert billing["hosts"][0] == {
            "hostName": "billing-1",
            "ipAddr": "10.0.0.11",
            "homePageUrl": "http://billing-1:8080/",
            "ports": [8080],
        }

    def test_get_one_microservice(self, client):
        response = client.get("/api/stages/qa/microservices/INVENTORY")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "INVENTORY"
        assert data["hosts"][0]["ports"] == [9000, 9443]

    def test_microservice_not_found(self, client):
        response = client.get("/api/stages/qa/microservices/MISSING")

        assert response.status_code == 404

    def test_unknown_stage(self, client, mock_registry_client):
        response = client.get("/api/stages/nosuchstage/microservices")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["detail"] == 'Invalid stage name "nosuchstage"'
        assert data["details"]["known_stages"] == ["dev", "prod", "qa"]
        mock_registry_client.fetch.assert_not_called()

    def test_registry_down_returns_empty(self, client, mock_registry_client):
        mock_registry_client.fetch.side_effect = TransportError("down", status_code=503)

        response = client.get("/api/stages/prod/microservices")

        assert response.status_code == 200
        assert response.json() == {"stage": "prod", "count": 0, "microservices": {}}

    def test_malformed_document(self, client, mock_registry_client):
        mock_registry_client.fetch.return_value = {
            "applications": {"application": [{"name": "BROKEN"}]},
        }

        response = client.get("/api/stages/qa/microservices")

        assert response.status_code == 502
        assert response.json()["details"]["application"] == "BROKEN"

    def test_offline_mode(self, client, collector, mock_registry_client):
        collector.offline_mode = True

        response = client.get("/api/stages/nosuchstage/microservices")

        assert response.status_code == 200
        assert response.json()["count"] == 0
        mock_registry_client.fetch.assert_not_called()


@pytest.mark.unit
class TestRefresh:

    def test_refresh_refetches(self, client, mock_registry_client):
        client.get("/api/stages/qa/microservices")
        client.get("/api/stages/qa/microservices")
        assert mock_registry_client.fetch.call_count == 1

        response = client.post("/api/stages/qa/refresh")
        assert response.status_code == 200
        assert response.json() == {"stage": "qa", "invalidated": True}

        client.get("/api/stages/qa/microservices")
        assert mock_registry_client.fetch.call_count == 2

    def test_refresh_unknown_stage(self, client):
        response = client.post("/api/stages/nosuchstage/refresh")

        assert response.status_code == 404


@pytest.mark.unit
class TestUnhandledErrors:

    def test_internal_error(self, collector, mock_registry_client):
        mock_registry_client.fetch.side_effect = RuntimeError("unexpected")
        app.dependency_overrides[get_collector] = lambda: collector
        try:
            with TestClient(app, raise_server_exceptions=False) as client:
                response = client.get("/api/stages/qa/microservices")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["error"] == "Internal Server Error"
