"""Tuya OpenAPI backend.

Every request is signed with HMAC-SHA256 over
``client_id + access_token + t + METHOD\\nsha256(body)\\n\\npath`` and
carries a cached access token that is refreshed five minutes before it
expires. Tuya reports most failures as HTTP 200 with ``success: false``.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import logging
import time
from collections.abc import Callable
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

REGION_URLS = {
    "us": "https://openapi.tuyaus.com",
    "eu": "https://openapi.tuyaeu.com",
    "cn": "https://openapi.tuyacn.com",
    "in": "https://openapi.tuyain.com",
}

TOKEN_PATH = "/v1.0/token?grant_type=1"
TOKEN_REFRESH_MARGIN = 300.0

CATEGORY_DEVICE_TYPES: dict[str, DeviceType] = {
    **dict.fromkeys(("dj", "dd", "fwd", "xdd", "dc", "tgq"), DeviceType.LIGHT),
    **dict.fromkeys(("cz", "pc"), DeviceType.PLUG),
    **dict.fromkeys(("kg", "tdq"), DeviceType.SWITCH),
    **dict.fromkeys(("wk", "wkf"), DeviceType.THERMOSTAT),
    **dict.fromkeys(("pir", "mcs", "ywbj", "rqbj", "jwbj"), DeviceType.SENSOR),
}


def category_to_type(category: str) -> DeviceType:
    """Map a Tuya product category code to a DeviceType."""
    return CATEGORY_DEVICE_TYPES.get(category, DeviceType.OTHER)


def region_base_url(region: str) -> str:
    """Get the OpenAPI endpoint for a data-center region (default: us)."""
    return REGION_URLS.get(region.lower(), REGION_URLS["us"])


class TuyaClient:
    """Device controller and catalog backed by the Tuya cloud."""

    service = "tuya"

    def __init__(
        self,
        client_id: str,
        secret: str,
        region: str = "us",
        base_url: str | None = None,
        timeout: float = 15.0,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize Tuya client.

        Args:
            client_id: Cloud project access ID
            secret: Cloud project access secret
            region: Data-center region (us, eu, cn, in)
            base_url: Explicit endpoint, overrides ``region``
            timeout: Per-request timeout in seconds
            retry_policy: Retry configuration for each request
            transport: Optional httpx transport (tests)
            clock: Wall clock in seconds (tests)
        """
        self.client_id = client_id
        self.secret = secret
        self.base_url = (base_url or region_base_url(region)).rstrip("/")
        self.timeout = timeout
        self.retry_policy = retry_policy
        self._transport = transport
        self._clock = clock

        self._token = ""
        self._uid = ""
        self._expire_at = 0.0
        self._token_lock = asyncio.Lock()

    def sign(self, timestamp: str, token: str, method: str, path: str, body: bytes = b"") -> str:
        """Compute the request signature.

        Args:
            timestamp: Milliseconds since epoch, as sent in the ``t`` header
            token: Access token ('' for the token request itself)
            method: HTTP method
            path: Request path including query string
            body: Raw request body

        Returns:
            Uppercase hex HMAC-SHA256
        """
        body_hash = hashlib.sha256(body).hexdigest()
        string_to_sign = f"{method}\n{body_hash}\n\n{path}"
        message = f"{self.client_id}{token}{timestamp}{string_to_sign}"
        digest = hmac.new(self.secret.encode(), message.encode(), hashlib.sha256).hexdigest()
        return digest.upper()

    def _token_valid(self) -> bool:
        return bool(self._token) and self._clock() + TOKEN_REFRESH_MARGIN < self._expire_at

    async def _send(self, method: str, path: str, body: bytes, token: str) -> dict[str, Any]:
        timestamp = str(int(self._clock() * 1000))
        headers = {
            "client_id": self.client_id,
            "sign": self.sign(timestamp, token, method, path, body),
            "t": timestamp,
            "sign_method": "HMAC-SHA256",
        }
        if token:
            headers["access_token"] = token
        if body:
            headers["Content-Type"] = "application/json"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.request(
                method,
                f"{self.base_url}{path}",
                content=body or None,
                headers=headers,
            )
        raise_for_remote_status(response, self.service)

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"parsing tuya response: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponseError("parsing tuya response: expected an object")
        return data

    async def ensure_token(self) -> None:
        """Fetch a new access token unless the cached one is still fresh.

        Raises:
            RemoteServiceError: If Tuya refuses the token request
        """
        if self._token_valid():
            return

        async with self._token_lock:
            if self._token_valid():
                return

            data = await with_retry(
                self.retry_policy,
                lambda: self._send("GET", TOKEN_PATH, b"", ""),
            )
            if not data.get("success"):
                raise RemoteServiceError(
                    f"token error: {data.get('msg', '')}",
                    service=self.service,
                    retryable=False,
                )

            result = data.get("result") or {}
            self._token = result.get("access_token", "")
            self._uid = result.get("uid", "")
            self._expire_at = self._clock() + float(result.get("expire_time", 0))
            logger.info("Tuya access token refreshed")

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        await self.ensure_token()
        body = json.dumps(payload, separators=(",", ":")).encode() if payload is not None else b""

        data = await with_retry(
            self.retry_policy,
            lambda: self._send(method, path, body, self._token),
        )
        if not data.get("success"):
            raise RemoteServiceError(
                f"tuya error: {data.get('msg', '')}",
                service=self.service,
                retryable=False,
            )
        return data.get("result")

    async def get_devices(self) -> list[Device]:
        """Fetch devices linked to the cloud project."""
        result = await self._request("GET", "/v1.0/iot-01/associated-users/devices")
        raw_devices = (result or {}).get("devices") or []

        return [
            Device(
                id=d.get("id", ""),
                name=d.get("name", ""),
                type=category_to_type(d.get("category", "")),
                category=d.get("category", ""),
                online=bool(d.get("online", False)),
            )
            for d in raw_devices
        ]

    async def get_homes(self) -> list[str]:
        """Fetch the home ids owned by the token's user."""
        await self.ensure_token()
        result = await self._request("GET", f"/v1.0/users/{self._uid}/homes")
        return [str(home["home_id"]) for home in result or [] if "home_id" in home]

    async def get_home_scenes(self, home_id: str) -> list[Scene]:
        """Fetch the scenes of one home."""
        result = await self._request("GET", f"/v1.0/homes/{home_id}/scenes")
        return [
            Scene(
                id=s.get("scene_id", ""),
                name=s.get("name", ""),
                status=s.get("status", ""),
                home_id=home_id,
            )
            for s in result or []
        ]

    async def get_scenes(self) -> list[Scene]:
        """Fetch scenes of every home; a home that fails is skipped."""
        scenes: list[Scene] = []
        for home_id in await self.get_homes():
            try:
                scenes.extend(await self.get_home_scenes(home_id))
            except GatewayError as e:
                logger.warning(f"Failed to fetch scenes for home {home_id}: {e}")
        return scenes

    def build_commands(self, command: Command) -> list[dict[str, Any]]:
        """Map a command to Tuya device instructions.

        Raises:
            GatewayError: If the action has no Tuya equivalent
        """
        if command.action == Action.TURN_ON:
            return [{"code": "switch_led", "value": True}]

        if command.action == Action.TURN_OFF:
            return [{"code": "switch_led", "value": False}]

        if command.action == Action.SET_LEVEL:
            level = command.parameters.get("level")
            if isinstance(level, bool) or not isinstance(level, (int, float)):
                level = 100
            # bright_value_v2 ranges 10-1000
            return [
                {"code": "switch_led", "value": True},
                {"code": "bright_value_v2", "value": int(level * 10)},
            ]

        if command.action == Action.SET_COLOR:
            return [{"code": "switch_led", "value": True}]

        raise GatewayError(f"unknown action: {command.action.value}")

    async def execute_command(self, command: Command) -> None:
        """Send instructions to a device."""
        commands = self.build_commands(command)
        logger.info(f"Sending {len(commands)} instruction(s) to device {command.target_id}")
        await self._request(
            "POST",
            f"/v1.0/iot-03/devices/{command.target_id}/commands",
            {"commands": commands},
        )

    async def trigger_scene(self, scene_id: str) -> None:
        """Trigger a scene."""
        logger.info(f"Triggering scene {scene_id}")
        await self._request("POST", f"/v1.0/iot-03/scenes/{scene_id}/trigger")
