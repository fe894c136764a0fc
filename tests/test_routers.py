"""Tests for the HTTP surface."""

from fastapi.testclient import TestClient

from conftest import make_row
from printsync import config
from printsync.main import create_app
from printsync.routers.health import HEALTH_MESSAGE


def _client(orchestrator=None):
    return TestClient(create_app(orchestrator, start_poller=False))


def test_health_is_plain_text():
    response = _client().get("/health")

    assert response.status_code == 200
    assert response.text == HEALTH_MESSAGE


def test_trigger_without_pipeline_is_unavailable():
    response = _client().post("/api/v1/cycle")

    assert response.status_code == 503


def test_trigger_runs_one_cycle(make_orchestrator, supabase, monkeypatch):
    monkeypatch.setattr(config, "APP_SECRET", None)
    supabase.rows.append(make_row(5, "x/sunset.png", "2024-05-01"))

    response = _client(make_orchestrator()).post("/api/v1/cycle")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "processed"
    assert body["record_id"] == 5
    assert body["product_id"] == "prod-1"


def test_trigger_requires_secret_when_configured(make_orchestrator, monkeypatch):
    monkeypatch.setattr(config, "APP_SECRET", "s3cret")
    client = _client(make_orchestrator())

    assert client.post("/api/v1/cycle").status_code == 400
    assert (
        client.post("/api/v1/cycle", headers={"X-App-Secret": "nope"}).status_code
        == 403
    )
    ok = client.post("/api/v1/cycle", headers={"X-App-Secret": "s3cret"})
    assert ok.status_code == 200
    assert ok.json()["status"] == "idle"


def test_status_reports_pipeline_state(make_orchestrator, supabase):
    supabase.rows.append(make_row(1, "x/a.png", "2024-05-01"))
    client = _client(make_orchestrator())
    client.post("/api/v1/cycle")

    response = client.get("/api/v1/status")

    assert response.status_code == 200
    body = response.json()
    assert body["polling"] is False
    assert body["counters"]["processed"] == 1
    assert body["last_result"]["record_id"] == 1
    assert body["capabilities"]["1"]["variant_id"] == 4012


def test_trigger_open_when_no_secret_configured(make_orchestrator, monkeypatch):
    monkeypatch.setattr(config, "APP_SECRET", None)

    response = _client(make_orchestrator()).post(
        "/api/v1/cycle", headers={"X-App-Secret": "anything"}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "idle"
