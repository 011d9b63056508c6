"""Collaborator protocols and exceptions."""

from voice_gateway.core.interfaces.backend import (
    CommandSource,
    ConfigurationError,
    DeviceCatalog,
    DeviceController,
    GatewayError,
    IntentParser,
    MalformedResponseError,
    Notifier,
    QueueFullError,
    RemoteServiceError,
    SourceClosedError,
    SpeechToText,
    StartupError,
    TargetNotFoundError,
)

__all__ = [
    "CommandSource",
    "ConfigurationError",
    "DeviceCatalog",
    "DeviceController",
    "GatewayError",
    "IntentParser",
    "MalformedResponseError",
    "Notifier",
    "QueueFullError",
    "RemoteServiceError",
    "SourceClosedError",
    "SpeechToText",
    "StartupError",
    "TargetNotFoundError",
]
