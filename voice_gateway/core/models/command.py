"""Command model produced by intent parsers.

A Command is the parsed form of one user utterance. It names a target
(device or scene) by its human-readable name; the pipeline fills in
``target_id`` once the name has been resolved against the registry.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Marks a queued payload as already-transcribed text instead of audio bytes
TEXT_COMMAND_PREFIX = b"__TEXT__:"


class Action(str, Enum):
    """Actions an intent parser may request."""

    TURN_ON = "turn_on"
    TURN_OFF = "turn_off"
    SET_LEVEL = "set_level"
    SET_COLOR = "set_color"
    RUN_SCENE = "run_scene"
    GET_STATUS = "get_status"
    UNKNOWN = "unknown"


class TargetType(str, Enum):
    """Kind of entity a command acts upon."""

    DEVICE = "device"
    SCENE = "scene"


class Command(BaseModel):
    """Parsed user command.

    Attributes:
        action: Requested action
        target_name: Device or scene name as spoken by the user
        target_id: Backend identifier, empty until resolved
        target_type: Whether the target is a device or a scene
        parameters: Action parameters (level, color, ...)
        raw_text: Text the command was parsed from
        confidence: Parser confidence, conventionally 0-1

    Examples:
        >>> Command(action="turn_on", target_name="Luz Living", confidence=0.95)
    """

    action: Action = Field(..., description="Requested action")

    target_name: str = Field(default="", description="Target name as spoken")

    target_id: str = Field(
        default="",
        description="Backend identifier, populated only after resolution",
    )

    target_type: TargetType = Field(
        default=TargetType.DEVICE,
        description="Device or scene",
    )

    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Action-specific parameters",
    )

    raw_text: str = Field(default="", description="Source text")

    confidence: float = Field(default=0.0, description="Parser confidence")

    @field_validator("action", mode="before")
    @classmethod
    def _coerce_action(cls, value: Any) -> Any:
        """Map unrecognized action names to ``unknown``."""
        if isinstance(value, Action):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in Action._value2member_map_:
                return normalized
        return Action.UNKNOWN

    @field_validator("target_type", mode="before")
    @classmethod
    def _default_target_type(cls, value: Any) -> Any:
        if value is None or value == "":
            return TargetType.DEVICE
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("parameters", mode="before")
    @classmethod
    def _default_parameters(cls, value: Any) -> Any:
        return value if value is not None else {}

    @property
    def is_unknown(self) -> bool:
        """Check if the parser could not understand the command."""
        return self.action == Action.UNKNOWN


def decode_text_command(payload: bytes) -> str | None:
    """Return the text carried by a sentinel-prefixed payload.

    Args:
        payload: Raw queued payload

    Returns:
        Text after the prefix, or None if the payload is audio
    """
    if len(payload) > len(TEXT_COMMAND_PREFIX) and payload.startswith(TEXT_COMMAND_PREFIX):
        return payload[len(TEXT_COMMAND_PREFIX):].decode("utf-8", errors="replace")
    return None


def encode_text_command(text: str) -> bytes:
    """Wrap already-transcribed text for the shared command queue."""
    return TEXT_COMMAND_PREFIX + text.encode("utf-8")
