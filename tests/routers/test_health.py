"""Tests for the /health endpoint."""

from __future__ import annotations

from fastapi.testclient import TestClient

from voice_gateway.services.http_source import HTTPSource


def test_health_ok(client: TestClient, http_source: HTTPSource) -> None:
    """Test health reports running state and queue depth."""
    http_source.submit(b"RIFF")

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "running": True, "queue_size": 1}


def test_health_not_ready(client: TestClient, http_source: HTTPSource) -> None:
    """Test health returns 503 while the source is not running."""
    http_source.running = False

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "not_ready", "running": False, "queue_size": 0}


def test_health_is_not_rate_limited() -> None:
    source = HTTPSource(rate_limit=1)
    source.running = True
    client = TestClient(source.app)

    statuses = {client.get("/health").status_code for _ in range(5)}

    assert statuses == {200}
