"""Tests for the read-only forecast API."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from wxsync import dates
from wxsync.config.schema import AppConfig
from wxsync.dashboard import create_app
from wxsync.models.sync import SyncStatus
from wxsync.sync.orchestrator import SyncOrchestrator
from wxsync.tests.factories import make_days


@pytest.fixture
def orchestrator(test_config: AppConfig, db_path):
    orch = SyncOrchestrator.from_config(test_config, db_path)
    yield orch
    orch.shutdown()


@pytest.fixture
def client(test_config: AppConfig, db_path, orchestrator: SyncOrchestrator) -> TestClient:
    # No `with` block: the lifespan (and its cold-start sync) does not run.
    return TestClient(create_app(test_config, db_path, orchestrator=orchestrator))


class TestForecastEndpoints:
    def test_empty_forecast(self, client: TestClient):
        resp = client.get("/api/forecast")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_forecast_from_today(self, client: TestClient, orchestrator: SyncOrchestrator):
        today = dates.today()
        orchestrator.store.replace_all(make_days(4, start=today - dates.DAY_IN_MILLIS))

        body = client.get("/api/forecast").json()

        assert len(body) == 3
        assert body[0]["date"] == today
        assert body[0]["day"] == dates.to_date_string(today)
        assert body[0]["condition_id"] == 800

    def test_forecast_by_day(self, client: TestClient, orchestrator: SyncOrchestrator):
        days = make_days(2, start=dates.today())
        orchestrator.store.replace_all(days)

        resp = client.get(f"/api/forecast/{dates.to_date_string(days[1].date)}")

        assert resp.status_code == 200
        assert resp.json()["date"] == days[1].date

    def test_forecast_by_epoch_ms(self, client: TestClient, orchestrator: SyncOrchestrator):
        days = make_days(1, start=dates.today())
        orchestrator.store.replace_all(days)
        assert client.get(f"/api/forecast/{days[0].date + 5000}").status_code == 200

    def test_missing_day(self, client: TestClient):
        assert client.get("/api/forecast/2020-01-01").status_code == 404

    def test_invalid_day(self, client: TestClient):
        assert client.get("/api/forecast/not-a-date").status_code == 400


class TestControlEndpoints:
    def test_trigger_sync(self, client: TestClient, orchestrator: SyncOrchestrator):
        with patch.object(orchestrator, "request_immediate_sync") as trigger:
            resp = client.post("/api/sync")
        assert resp.status_code == 202
        assert resp.json() == {"status": "scheduled"}
        trigger.assert_called_once()

    def test_location(self, client: TestClient, orchestrator: SyncOrchestrator):
        orchestrator.preferences.set_coordinates(37.3861, -122.0839)
        body = client.get("/api/location").json()
        assert body == {"query": "94043,USA", "latitude": 37.3861, "longitude": -122.0839}

    def test_status_before_any_sync(self, client: TestClient):
        body = client.get("/api/status").json()
        assert body["initialized"] is False
        assert body["total_syncs"] == 0
        assert body["last_status"] is None

    def test_status_after_failed_sync(self, client: TestClient, orchestrator: SyncOrchestrator):
        with patch.object(orchestrator.fetcher, "fetch", side_effect=RuntimeError("boom")):
            orchestrator.sync_now()
        body = client.get("/api/status").json()
        assert body["total_syncs"] == 1
        assert body["last_status"] == SyncStatus.FAILED.value
        assert "boom" in body["last_error"]
