"""Domain models shared by the pipeline, registry and adapters."""

from voice_gateway.core.models.command import (
    TEXT_COMMAND_PREFIX,
    Action,
    Command,
    TargetType,
    decode_text_command,
    encode_text_command,
)
from voice_gateway.core.models.device import Device, DeviceFunction, DeviceType, Scene

__all__ = [
    "TEXT_COMMAND_PREFIX",
    "Action",
    "Command",
    "TargetType",
    "decode_text_command",
    "encode_text_command",
    "Device",
    "DeviceFunction",
    "DeviceType",
    "Scene",
]
