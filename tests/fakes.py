"""Test doubles shared across test modules."""

from __future__ import annotations

from voice_gateway.core.interfaces import SourceClosedError
from voice_gateway.core.models import Device, Scene


class FakeCatalog:
    """In-memory device backend listing."""

    def __init__(self, devices: list[Device], scenes: list[Scene]) -> None:
        self.devices = list(devices)
        self.scenes = list(scenes)
        self.fail = False
        self.sync_calls = 0

    async def get_devices(self) -> list[Device]:
        self.sync_calls += 1
        if self.fail:
            raise ConnectionError("backend unreachable")
        return list(self.devices)

    async def get_scenes(self) -> list[Scene]:
        if self.fail:
            raise ConnectionError("backend unreachable")
        return list(self.scenes)


class ScriptedSource:
    """Command source replaying a fixed list of payloads, then closing."""

    def __init__(self, payloads: list[bytes]) -> None:
        self.payloads = list(payloads)
        self.started = False
        self.stopped = False

    @property
    def name(self) -> str:
        return "scripted"

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def next_command(self) -> bytes:
        if not self.payloads:
            raise SourceClosedError("no more payloads")
        return self.payloads.pop(0)
