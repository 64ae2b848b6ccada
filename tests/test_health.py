from unittest.mock import AsyncMock

from fakes import ScriptedGenerator
from tenq.application.queries.health import DeepPingHandler, DeepPingQuery
from tenq.config.settings import Config


def test_ping(client):
    res = client.get("/ping")

    assert res.status_code == 200
    assert res.text == "ok"


def test_deep_ping(client, fake_openai):
    res = client.get("/deep-ping")

    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["checks"]["database"]["ok"] is True
    assert "latencyMs" in body["checks"]["database"]
    assert body["checks"]["openai"]["ok"] is True
    assert body["checks"]["openai"]["circuitState"] == "closed"
    assert fake_openai.models.calls == 1


def test_deep_ping_reports_provider_failure_but_stays_ready(client, fake_openai):
    fake_openai.models.error = ConnectionError("connection refused")

    res = client.get("/deep-ping")

    assert res.status_code == 200
    openai = res.json()["checks"]["openai"]
    assert openai["ok"] is False
    assert openai["error"] == "network_error"


async def test_database_failure_marks_not_ready():
    store = AsyncMock()
    store.health_check.side_effect = OSError("disk I/O error")

    result = await DeepPingHandler(store, ScriptedGenerator()).execute(DeepPingQuery())

    assert result.ok is False
    assert result.checks["database"]["ok"] is False
    assert result.checks["database"]["error"] == "OSError"
    assert result.checks["openai"]["ok"] is True


# ==================== METRICS ====================


def test_metrics_open_without_token(client):
    res = client.get("/metrics")

    assert res.status_code == 200
    assert "tenq_llm_circuit_state" in res.text


def test_metrics_token(client, monkeypatch):
    monkeypatch.setattr(Config, "METRICS_TOKEN", "scrape-secret")

    assert client.get("/metrics").status_code == 401
    assert (
        client.get("/metrics", headers={"Authorization": "Bearer wrong"}).status_code
        == 403
    )
    res = client.get("/metrics", headers={"Authorization": "Bearer scrape-secret"})
    assert res.status_code == 200
    assert "http_server_request_duration_seconds" in res.text
