"""Collaborator protocols and gateway exceptions.

The pipeline only talks to these protocols. Every remote vendor
(speech-to-text, intent parsing, device control, push notification) is
an adapter that structurally satisfies one of them, and each has a
no-op or stub variant so a deployment can omit it.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol, runtime_checkable

from voice_gateway.core.models import Command, Device, Scene


@runtime_checkable
class SpeechToText(Protocol):
    """Speech-to-text capability."""

    @abstractmethod
    async def transcribe(self, audio: bytes) -> str:
        """Transcribe raw audio bytes to text."""
        ...


@runtime_checkable
class IntentParser(Protocol):
    """Natural-language intent parsing capability."""

    @abstractmethod
    async def parse_intent(self, text: str, registry_summary: str) -> Command:
        """Parse text into a Command.

        Args:
            text: User utterance
            registry_summary: Rendered device/scene list for prompt context

        Returns:
            Parsed command (action may be ``unknown``)
        """
        ...


@runtime_checkable
class DeviceController(Protocol):
    """Device-control backend capability."""

    @abstractmethod
    async def execute_command(self, command: Command) -> None:
        """Execute a resolved device command (``target_id`` is set)."""
        ...

    @abstractmethod
    async def trigger_scene(self, scene_id: str) -> None:
        """Activate a scene by backend identifier."""
        ...


@runtime_checkable
class DeviceCatalog(Protocol):
    """Listing side of a device backend, consumed by the registry."""

    @abstractmethod
    async def get_devices(self) -> list[Device]:
        """Fetch the full device list in backend order."""
        ...

    @abstractmethod
    async def get_scenes(self) -> list[Scene]:
        """Fetch the full scene list in backend order."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Outbound notification capability (best effort)."""

    @abstractmethod
    async def notify(self, message: str) -> None:
        """Send a message to the user."""
        ...


@runtime_checkable
class CommandSource(Protocol):
    """Producer of queued command payloads (audio bytes or sentinel text).

    Lifecycle:
        1. start() begins accepting input
        2. next_command() is awaited repeatedly by the pipeline
        3. stop() stops intake; idempotent
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Source identifier for logging."""
        ...

    @abstractmethod
    async def start(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        ...

    @abstractmethod
    async def next_command(self) -> bytes:
        """Wait for the next payload.

        Raises:
            SourceClosedError: If the source was stopped and is drained
        """
        ...


class GatewayError(Exception):
    """Base exception for gateway errors."""

    pass


class RemoteServiceError(GatewayError):
    """Raised when a remote service call fails.

    ``retryable`` records whether the failure looks transient (network,
    429, 5xx); it is informational unless a retry predicate uses it.
    """

    def __init__(
        self,
        message: str,
        service: str | None = None,
        status_code: int | None = None,
        retryable: bool = True,
    ) -> None:
        """Initialize remote service error.

        Args:
            message: Error description
            service: Remote service name (optional)
            status_code: HTTP status, if a response was received
            retryable: Whether the failure is considered transient
        """
        self.service = service
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(f"[{service}] {message}" if service else message)


class TargetNotFoundError(GatewayError):
    """Raised when a device or scene name cannot be resolved."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} not found: {name}")


class MalformedResponseError(GatewayError):
    """Raised when a collaborator returns something that cannot be parsed."""

    pass


class SourceClosedError(GatewayError):
    """Raised by a command source that has been stopped and drained."""

    pass


class QueueFullError(GatewayError):
    """Raised when a non-blocking enqueue finds the queue at capacity."""

    pass


class StartupError(GatewayError):
    """Raised when the pipeline cannot start (e.g. initial sync failed)."""

    pass


class ConfigurationError(GatewayError):
    """Raised when configuration does not allow building a collaborator."""

    pass
