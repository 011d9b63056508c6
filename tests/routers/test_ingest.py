"""Tests for the /audio and /text endpoints."""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from voice_gateway.core.models import decode_text_command
from voice_gateway.services.http_source import MAX_AUDIO_BYTES, MAX_TEXT_BYTES, HTTPSource


def drain(source: HTTPSource) -> list[bytes]:
    payloads = []
    while source.queue.qsize():
        payloads.append(asyncio.run(source.next_command()))
    return payloads


class TestTextEndpoint:
    """Tests for POST /text."""

    def test_text_is_queued_with_sentinel(self, client: TestClient, http_source: HTTPSource) -> None:
        response = client.post("/text", content="prendé la luz del living".encode("utf-8"))

        assert response.status_code == 202
        assert response.json() == {"status": "received", "text": "prendé la luz del living"}
        payloads = drain(http_source)
        assert [decode_text_command(p) for p in payloads] == ["prendé la luz del living"]

    def test_text_is_queued_unchanged(self, client: TestClient, http_source: HTTPSource) -> None:
        body = "  apagá la cafetera \n"

        response = client.post("/text", content=body.encode("utf-8"))

        assert response.status_code == 202
        assert response.json()["text"] == body
        assert [decode_text_command(p) for p in drain(http_source)] == [body]

    def test_empty_text_rejected(self, client: TestClient, http_source: HTTPSource) -> None:
        response = client.post("/text", content=b"   \n")

        assert response.status_code == 400
        assert http_source.queue.qsize() == 0

    def test_oversized_text_rejected(self, client: TestClient, http_source: HTTPSource) -> None:
        response = client.post("/text", content=b"a" * (MAX_TEXT_BYTES + 1))

        assert response.status_code == 413
        assert http_source.queue.qsize() == 0

    def test_text_at_limit_accepted(self, client: TestClient) -> None:
        response = client.post("/text", content=b"a" * MAX_TEXT_BYTES)

        assert response.status_code == 202


class TestAudioEndpoint:
    """Tests for POST /audio."""

    def test_audio_is_queued(self, client: TestClient, http_source: HTTPSource) -> None:
        audio = b"RIFF" + b"\x00" * 100

        response = client.post("/audio", content=audio, headers={"Content-Type": "audio/wav"})

        assert response.status_code == 202
        assert response.json() == {"status": "received", "bytes": 104}
        assert drain(http_source) == [audio]

    def test_empty_audio_rejected(self, client: TestClient) -> None:
        response = client.post("/audio", content=b"")

        assert response.status_code == 400

    def test_oversized_audio_rejected(self, client: TestClient, http_source: HTTPSource) -> None:
        response = client.post("/audio", content=b"\x00" * (MAX_AUDIO_BYTES + 1))

        assert response.status_code == 413
        assert http_source.queue.qsize() == 0


class TestBackpressure:
    def test_full_queue_returns_503(self, client: TestClient, http_source: HTTPSource) -> None:
        for i in range(http_source.queue.maxsize):
            assert client.post("/text", content=f"comando {i}".encode()).status_code == 202

        response = client.post("/text", content=b"uno mas")

        assert response.status_code == 503
        assert http_source.queue.qsize() == http_source.queue.maxsize

    def test_closed_source_returns_503(self, client: TestClient, http_source: HTTPSource) -> None:
        http_source.queue.close()

        response = client.post("/audio", content=b"RIFF")

        assert response.status_code == 503
        assert response.json()["detail"] == "shutting down"

    def test_fifo_order_preserved(self, client: TestClient, http_source: HTTPSource) -> None:
        client.post("/text", content=b"primero")
        client.post("/audio", content=b"segundo")
        client.post("/text", content=b"tercero")

        payloads = drain(http_source)

        assert decode_text_command(payloads[0]) == "primero"
        assert payloads[1] == b"segundo"
        assert decode_text_command(payloads[2]) == "tercero"


class TestRateLimit:
    def test_requests_over_quota_get_429(self) -> None:
        source = HTTPSource(queue_size=10, rate_limit=2, rate_window=60.0)
        client = TestClient(source.app)

        assert client.post("/text", content=b"uno").status_code == 202
        assert client.post("/text", content=b"dos").status_code == 202
        response = client.post("/text", content=b"tres")

        assert response.status_code == 429
        assert source.queue.qsize() == 2

    def test_quota_is_per_client(self) -> None:
        source = HTTPSource(queue_size=10, rate_limit=1, rate_window=60.0)
        client = TestClient(source.app)

        assert client.post("/text", content=b"uno", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 202
        assert client.post("/text", content=b"dos", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 429
        assert client.post("/text", content=b"tres", headers={"X-Forwarded-For": "2.2.2.2"}).status_code == 202
