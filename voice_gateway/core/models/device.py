"""Device and scene models.

Both are frozen: a registry sync always produces new values and never
mutates the ones a reader may still hold.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DeviceType(str, Enum):
    """Normalized device classification."""

    LIGHT = "light"
    PLUG = "plug"
    SWITCH = "switch"
    THERMOSTAT = "thermostat"
    SENSOR = "sensor"
    OTHER = "other"


class DeviceFunction(BaseModel):
    """Capability descriptor reported by the backend."""

    model_config = ConfigDict(frozen=True)

    code: str
    type: str = ""
    values: dict[str, Any] = Field(default_factory=dict)


class Device(BaseModel):
    """Controllable device known to the backend.

    Attributes:
        id: Stable backend identifier (entity_id, Tuya device id, ...)
        name: Human-readable name used for voice lookup
        type: Normalized device type
        category: Backend-specific classification string
        online: Whether the backend can currently reach the device
        functions: Capability descriptors
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable backend identifier")
    name: str = Field(..., description="Display name")
    type: DeviceType = Field(default=DeviceType.OTHER)
    category: str = Field(default="", description="Backend classification")
    online: bool = Field(default=True)
    functions: tuple[DeviceFunction, ...] = Field(default_factory=tuple)


class Scene(BaseModel):
    """Scene (a stored group of device states) known to the backend."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable backend identifier")
    name: str = Field(..., description="Display name")
    status: str = Field(default="")
    home_id: str | None = Field(default=None, description="Grouping home, if any")
