"""Core abstractions for the voice gateway.

Modules:
    interfaces: Collaborator protocols and the exception hierarchy
    models: Command, Device and Scene models
"""

from voice_gateway.core.interfaces import (
    CommandSource,
    DeviceCatalog,
    DeviceController,
    IntentParser,
    Notifier,
    SpeechToText,
)
from voice_gateway.core.models import Action, Command, Device, Scene, TargetType

__all__ = [
    "CommandSource",
    "DeviceCatalog",
    "DeviceController",
    "IntentParser",
    "Notifier",
    "SpeechToText",
    "Action",
    "Command",
    "Device",
    "Scene",
    "TargetType",
]
