"""Device and scene registry with fuzzy name lookup.

The registry caches the backend's device and scene lists in an immutable
RegistrySnapshot. A sync fetches everything first, builds a new snapshot
off to the side, and only then takes the write lock to swap it in, so
readers never see devices from one sync paired with scenes from another.

Lookups:
- exact (case-insensitive, trimmed) name match always wins
- otherwise the first entity, in backend order, whose name contains
  the query
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TypeVar

from voice_gateway.core.interfaces import DeviceCatalog
from voice_gateway.core.models import Device, Scene
from voice_gateway.utils.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

E = TypeVar("E", Device, Scene)


def _normalize(name: str) -> str:
    return name.strip().lower()


def _build_index(entities: Sequence[E]) -> Mapping[str, E]:
    index: dict[str, E] = {}
    for entity in entities:
        # First-listed entity keeps a duplicated name
        index.setdefault(_normalize(entity.name), entity)
    return MappingProxyType(index)


@dataclass(frozen=True)
class RegistrySnapshot:
    """Atomic registry state: entity lists plus lowercase-name indices."""

    devices: tuple[Device, ...] = ()
    scenes: tuple[Scene, ...] = ()
    device_index: Mapping[str, Device] = field(default_factory=lambda: MappingProxyType({}))
    scene_index: Mapping[str, Scene] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, devices: Sequence[Device], scenes: Sequence[Scene]) -> RegistrySnapshot:
        """Create a snapshot and its indices from fetched lists."""
        devices = tuple(devices)
        scenes = tuple(scenes)
        return cls(
            devices=devices,
            scenes=scenes,
            device_index=_build_index(devices),
            scene_index=_build_index(scenes),
        )


def _find(entities: Sequence[E], index: Mapping[str, E], name: str) -> E | None:
    key = _normalize(name)
    if not key:
        return None

    exact = index.get(key)
    if exact is not None:
        return exact

    for entity in entities:
        if key in entity.name.lower():
            return entity
    return None


class DeviceRegistry:
    """Concurrently readable cache of the backend's devices and scenes."""

    def __init__(self, catalog: DeviceCatalog) -> None:
        """Initialize an empty registry.

        Args:
            catalog: Backend adapter that lists devices and scenes
        """
        self.catalog = catalog
        self._lock = ReadWriteLock()
        self._snapshot = RegistrySnapshot()

    @property
    def snapshot(self) -> RegistrySnapshot:
        """Current snapshot (immutable, safe to keep)."""
        with self._lock.read():
            return self._snapshot

    async def sync(self) -> None:
        """Fetch devices and scenes and install a new snapshot.

        On failure the previous snapshot stays in place.

        Raises:
            Exception: Whatever the catalog raised while fetching
        """
        logger.info("Syncing devices and scenes")

        devices = await self.catalog.get_devices()
        scenes = await self.catalog.get_scenes()
        snapshot = RegistrySnapshot.build(devices, scenes)

        with self._lock.write():
            self._snapshot = snapshot

        logger.info(f"Sync complete: {len(snapshot.devices)} devices, {len(snapshot.scenes)} scenes")

    def get_devices(self) -> list[Device]:
        """Get a copy of the device list."""
        with self._lock.read():
            return list(self._snapshot.devices)

    def get_scenes(self) -> list[Scene]:
        """Get a copy of the scene list."""
        with self._lock.read():
            return list(self._snapshot.scenes)

    def find_device_by_name(self, name: str) -> Device | None:
        """Find a device by exact or partial name.

        Args:
            name: Name as spoken by the user

        Returns:
            Matching device or None
        """
        with self._lock.read():
            snapshot = self._snapshot
            return _find(snapshot.devices, snapshot.device_index, name)

    def find_scene_by_name(self, name: str) -> Scene | None:
        """Find a scene by exact or partial name.

        Args:
            name: Name as spoken by the user

        Returns:
            Matching scene or None
        """
        with self._lock.read():
            snapshot = self._snapshot
            return _find(snapshot.scenes, snapshot.scene_index, name)

    def summary(self) -> str:
        """Render devices and scenes as prompt context for the intent parser.

        Returns:
            Markdown-style listing of devices (name, type, online state)
            followed by scene names
        """
        with self._lock.read():
            snapshot = self._snapshot

            lines = ["## Dispositivos disponibles:"]
            for device in snapshot.devices:
                status = "online" if device.online else "offline"
                lines.append(f"- {device.name} (tipo: {device.type.value}, estado: {status})")

            lines.append("")
            lines.append("## Escenas disponibles:")
            for scene in snapshot.scenes:
                lines.append(f"- {scene.name}")

        return "\n".join(lines) + "\n"

    def start_periodic_sync(self, interval: float) -> asyncio.Task[None]:
        """Start syncing every ``interval`` seconds on a background task.

        Sync failures are logged and the schedule continues. Cancel the
        returned task to stop.

        Args:
            interval: Seconds between syncs

        Returns:
            The scheduler task
        """
        return asyncio.create_task(self._sync_forever(interval), name="registry-sync")

    async def _sync_forever(self, interval: float) -> None:
        logger.info(f"Periodic registry sync every {interval:.0f}s")
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sync()
            except Exception as e:
                logger.error(f"Periodic sync failed: {e}")
