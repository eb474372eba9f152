from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_returns_ok(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["checks"]["storage"] == "in_memory"
    assert data["checks"]["quiz_repo"] == "ok"


def test_health_includes_slo_status(client: TestClient) -> None:
    data = client.get("/health").json()
    assert set(data["slos"]) == {"availability", "latency_p95"}
    for slo in data["slos"].values():
        assert {"current", "target", "healthy"} <= set(slo)


def test_ready_returns_200(client: TestClient) -> None:
    resp = client.get("/ready")
    assert resp.status_code == 200
