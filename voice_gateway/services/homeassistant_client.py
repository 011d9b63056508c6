"""Home Assistant REST API backend.

Implements both sides of a device backend: listing devices and scenes
from ``/api/states`` for the registry, and executing commands through
``/api/services/<domain>/<service>``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from voice_gateway.core.interfaces import GatewayError, MalformedResponseError, RemoteServiceError
from voice_gateway.core.models import Action, Command, Device, DeviceType, Scene
from voice_gateway.services.retry import (
    DEFAULT_RETRY_POLICY,
    RetryPolicy,
    raise_for_remote_status,
    with_retry,
)

logger = logging.getLogger(__name__)

# Entity domains exposed as devices; anything else is skipped
DOMAIN_DEVICE_TYPES: dict[str, DeviceType] = {
    "light": DeviceType.LIGHT,
    "switch": DeviceType.SWITCH,
    "climate": DeviceType.THERMOSTAT,
    "sensor": DeviceType.SENSOR,
    "binary_sensor": DeviceType.SENSOR,
    "fan": DeviceType.OTHER,
}


def entity_domain(entity_id: str) -> str:
    """Get the domain part of an entity id (``light.kitchen`` -> ``light``)."""
    domain, sep, _ = entity_id.partition(".")
    return domain if sep else ""


def _friendly_name(entity: dict[str, Any]) -> str:
    name = (entity.get("attributes") or {}).get("friendly_name")
    return name if isinstance(name, str) and name else entity["entity_id"]


class HomeAssistantClient:
    """Device controller and catalog backed by Home Assistant."""

    service = "homeassistant"

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 15.0,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Home Assistant client.

        Args:
            base_url: Home Assistant URL (e.g. http://homeassistant:8123)
            token: Long-lived access token
            timeout: Per-request timeout in seconds
            retry_policy: Retry configuration for each request
            transport: Optional httpx transport (tests)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.retry_policy = retry_policy
        self._transport = transport

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

        async def call() -> Any:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=payload,
                    headers=headers,
                )
            if response.status_code == 401:
                raise RemoteServiceError(
                    "unauthorized: check your Home Assistant token",
                    service=self.service,
                    status_code=401,
                    retryable=False,
                )
            raise_for_remote_status(response, self.service)
            return response.json() if response.content else None

        return await with_retry(self.retry_policy, call)

    async def _get_states(self) -> list[dict[str, Any]]:
        states = await self._request("GET", "/api/states")
        if not isinstance(states, list):
            raise MalformedResponseError("parsing states: expected a list")
        return [s for s in states if isinstance(s, dict) and isinstance(s.get("entity_id"), str)]

    async def get_devices(self) -> list[Device]:
        """Fetch controllable entities as devices, in Home Assistant order."""
        devices = []
        for entity in await self._get_states():
            entity_id = entity["entity_id"]
            domain = entity_domain(entity_id)
            device_type = DOMAIN_DEVICE_TYPES.get(domain)
            if device_type is None:
                continue

            devices.append(
                Device(
                    id=entity_id,
                    name=_friendly_name(entity),
                    type=device_type,
                    category=domain,
                    online=entity.get("state") != "unavailable",
                )
            )
        return devices

    async def get_scenes(self) -> list[Scene]:
        """Fetch ``scene.*`` entities as scenes."""
        return [
            Scene(id=entity["entity_id"], name=_friendly_name(entity), status=str(entity.get("state", "")))
            for entity in await self._get_states()
            if entity["entity_id"].startswith("scene.")
        ]

    def build_service_call(self, command: Command) -> tuple[str, dict[str, Any]]:
        """Map a command to a Home Assistant service and its data.

        Args:
            command: Resolved device command

        Returns:
            Tuple of (``domain.service``, service data without entity_id)

        Raises:
            GatewayError: If the action has no service equivalent
        """
        domain = entity_domain(command.target_id) or "light"
        data: dict[str, Any] = {}

        if command.action == Action.TURN_ON:
            return f"{domain}.turn_on", data

        if command.action == Action.TURN_OFF:
            return f"{domain}.turn_off", data

        if command.action == Action.SET_LEVEL:
            level = command.parameters.get("level")
            if isinstance(level, bool) or not isinstance(level, (int, float)):
                level = 100
            # Home Assistant brightness is 0-255
            data["brightness"] = max(0, min(255, round(level * 255 / 100)))
            return "light.turn_on", data

        if command.action == Action.SET_COLOR:
            color = command.parameters.get("color")
            if isinstance(color, str):
                data["color_name"] = color
            return "light.turn_on", data

        raise GatewayError(f"unknown action: {command.action.value}")

    async def execute_command(self, command: Command) -> None:
        """Execute a device command.

        Raises:
            GatewayError: If the action is not supported
            RemoteServiceError: If Home Assistant keeps failing
        """
        service, data = self.build_service_call(command)
        domain, _, name = service.partition(".")
        data["entity_id"] = command.target_id

        logger.info(f"Calling service {service} on {command.target_id}")
        await self._request("POST", f"/api/services/{domain}/{name}", data)

    async def trigger_scene(self, scene_id: str) -> None:
        """Activate a scene entity."""
        logger.info(f"Activating scene {scene_id}")
        await self._request("POST", "/api/services/scene/turn_on", {"entity_id": scene_id})
