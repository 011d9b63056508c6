"""Command pipeline.

One Assistant task consumes the command source strictly in order: a
command is transcribed, parsed, resolved and executed before the next one
is dequeued, so device side effects follow arrival order.

Per-command states:
    awaiting input -> transcribing | text passthrough -> parsing intent
    -> resolving target -> executing -> notifying -> awaiting input

A failing command is logged (and reported through the notifier when the
failure happened while resolving or executing) and the loop continues.
Only cancellation stops the loop.
"""

from __future__ import annotations

import logging
import uuid

from voice_gateway.core.interfaces import (
    CommandSource,
    DeviceController,
    GatewayError,
    IntentParser,
    Notifier,
    SourceClosedError,
    SpeechToText,
    StartupError,
    TargetNotFoundError,
)
from voice_gateway.core.models import Command, TargetType, decode_text_command
from voice_gateway.services.device_registry import DeviceRegistry

logger = logging.getLogger(__name__)


class Assistant:
    """Sequential voice/text command processor."""

    def __init__(
        self,
        source: CommandSource,
        stt: SpeechToText,
        intent_parser: IntentParser,
        controller: DeviceController,
        registry: DeviceRegistry,
        notifier: Notifier,
    ) -> None:
        """Initialize the pipeline.

        Args:
            source: Where queued payloads come from
            stt: Transcription for audio payloads
            intent_parser: Turns text into a Command
            controller: Executes device commands and scenes
            registry: Resolves spoken names to backend ids
            notifier: Receives success and failure messages
        """
        self.source = source
        self.stt = stt
        self.intent_parser = intent_parser
        self.controller = controller
        self.registry = registry
        self.notifier = notifier

    async def run(self) -> None:
        """Sync the registry, start the source and process commands forever.

        Returns when the source is closed and drained.

        Raises:
            StartupError: If the initial registry sync or source start fails
            asyncio.CancelledError: On shutdown
        """
        logger.info("Syncing device registry")
        try:
            await self.registry.sync()
        except Exception as e:
            raise StartupError(f"initial registry sync: {e}") from e

        logger.info(f"Starting command source: {self.source.name}")
        try:
            await self.source.start()
        except Exception as e:
            raise StartupError(f"starting command source: {e}") from e

        try:
            logger.info("Assistant ready, waiting for commands")
            while True:
                try:
                    payload = await self.source.next_command()
                except SourceClosedError:
                    logger.info("Command source closed, stopping pipeline")
                    return

                try:
                    await self.process_one_command(payload)
                except Exception as e:
                    logger.error(f"Processing command failed: {e}")
        finally:
            await self.source.stop()

    async def process_one_command(self, payload: bytes) -> None:
        """Process a single queued payload.

        Args:
            payload: Audio bytes, or text carrying the text sentinel prefix

        Raises:
            Exception: Any transcription, parsing, resolution or execution
                failure; resolution and execution failures are also
                reported through the notifier first
        """
        if not payload:
            return

        cid = uuid.uuid4().hex[:8]

        text = decode_text_command(payload)
        if text is not None:
            logger.info(f"[{cid}] Received text command: {text}")
        else:
            logger.info(f"[{cid}] Received audio: {len(payload)} bytes")
            text = await self.stt.transcribe(payload)
            logger.info(f"[{cid}] Transcribed: {text}")

        command = await self.intent_parser.parse_intent(text, self.registry.summary())
        logger.info(
            f"[{cid}] Parsed intent: action={command.action.value}, "
            f"target={command.target_name}, confidence={command.confidence:.2f}"
        )

        if command.is_unknown:
            logger.warning(f"[{cid}] Unknown command, skipping: {text}")
            return

        try:
            result = await self.execute_command(command)
        except Exception as e:
            await self._notify(cid, f"Error: {e}")
            raise

        logger.info(f"[{cid}] {result}")
        await self._notify(cid, result)

    async def execute_command(self, command: Command) -> str:
        """Resolve the command's target and dispatch it.

        Args:
            command: Parsed command (``target_id`` is filled for devices)

        Returns:
            Success message for the notifier

        Raises:
            TargetNotFoundError: If the name matches nothing in the registry
        """
        if command.target_type == TargetType.SCENE:
            scene = self.registry.find_scene_by_name(command.target_name)
            if scene is None:
                raise TargetNotFoundError("scene", command.target_name)
            await self.controller.trigger_scene(scene.id)
            return f"Scene '{command.target_name}' executed"

        if command.target_type == TargetType.DEVICE:
            device = self.registry.find_device_by_name(command.target_name)
            if device is None:
                raise TargetNotFoundError("device", command.target_name)
            command.target_id = device.id
            await self.controller.execute_command(command)
            return f"Command '{command.action.value}' executed on '{command.target_name}'"

        raise GatewayError(f"unknown target type: {command.target_type}")

    async def _notify(self, cid: str, message: str) -> None:
        try:
            await self.notifier.notify(message)
        except Exception as e:
            logger.error(f"[{cid}] Notification failed: {e}")
