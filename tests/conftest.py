"""Pytest configuration and shared fixtures for Voice Gateway tests."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from tests.fakes import FakeCatalog
from voice_gateway.core.models import Device, DeviceType, Scene
from voice_gateway.services.device_registry import DeviceRegistry
from voice_gateway.services.http_source import HTTPSource
from voice_gateway.services.retry import RetryPolicy


@pytest.fixture
def sample_devices() -> list[Device]:
    """Fixture providing a small device list.

    Returns:
        Devices in backend order
    """
    return [
        Device(id="dev123", name="Luz Living", type=DeviceType.LIGHT, category="dj"),
        Device(id="dev456", name="Luz Cocina", type=DeviceType.LIGHT, category="dj", online=False),
        Device(id="plug1", name="Enchufe Cafetera", type=DeviceType.PLUG, category="cz"),
    ]


@pytest.fixture
def sample_scenes() -> list[Scene]:
    """Fixture providing a small scene list."""
    return [
        Scene(id="scene456", name="Buenas Noches", home_id="1"),
        Scene(id="scene789", name="Película", home_id="1"),
    ]


@pytest.fixture
def fake_catalog(sample_devices: list[Device], sample_scenes: list[Scene]) -> FakeCatalog:
    return FakeCatalog(sample_devices, sample_scenes)


@pytest.fixture
def registry(fake_catalog: FakeCatalog) -> DeviceRegistry:
    """Fixture providing an unsynced registry over the fake catalog."""
    return DeviceRegistry(fake_catalog)


@pytest.fixture
def mock_notifier() -> AsyncMock:
    notifier = AsyncMock()
    notifier.notify = AsyncMock()
    return notifier


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Retry policy with zero backoff for adapter tests."""
    return RetryPolicy(max_attempts=3, initial_delay=0.0, max_delay=0.0)


@pytest.fixture
def no_retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=1)


@pytest.fixture
def http_source() -> HTTPSource:
    """Fixture providing an HTTP source that is marked running.

    The uvicorn server is never started; tests drive the app through
    TestClient.
    """
    source = HTTPSource(queue_size=3, rate_limit=100, rate_window=60.0)
    source.running = True
    return source


@pytest.fixture
def client(http_source: HTTPSource) -> TestClient:
    """Fixture providing a test client for the ingestion API."""
    return TestClient(http_source.app)
