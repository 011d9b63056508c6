"""Voice Gateway application.

Wires configuration to collaborators and runs the command pipeline:
- the HTTP source (FastAPI under uvicorn) or the file source feeds payloads
- the Assistant transcribes, parses, resolves and executes them
- the device registry re-syncs in the background
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from fastapi import FastAPI
from pythonjsonlogger import jsonlogger

from voice_gateway.core.interfaces import (
    CommandSource,
    ConfigurationError,
    DeviceController,
    IntentParser,
    Notifier,
    SpeechToText,
)
from voice_gateway.models import Config
from voice_gateway.routers import alexa, health, ingest
from voice_gateway.services.anthropic_client import AnthropicIntentParser
from voice_gateway.services.device_registry import DeviceRegistry
from voice_gateway.services.file_source import FileSource
from voice_gateway.services.gemini_client import GeminiIntentParser
from voice_gateway.services.homeassistant_client import HomeAssistantClient
from voice_gateway.services.http_source import HTTPSource
from voice_gateway.services.notifier import NoopNotifier, PushoverNotifier
from voice_gateway.services.pipeline import Assistant
from voice_gateway.services.stt_client import NoopSTT, OpenAIWhisperClient
from voice_gateway.services.tuya_client import TuyaClient

logger = logging.getLogger(__name__)

TEXT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """Configure root logging on stdout.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: ``json`` for structured logs, ``text`` for plain lines
    """
    if log_format == "json":
        formatter: logging.Formatter = jsonlogger.JsonFormatter(  # type: ignore[attr-defined]
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        )
    else:
        formatter = logging.Formatter(TEXT_LOG_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # Reduce noise from httpx and per-request access lines
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def create_app(source: HTTPSource) -> FastAPI:
    """Create the ingestion API bound to an HTTP source.

    Args:
        source: Source whose queue and rate limiter the routes use

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Voice Gateway",
        description="Voice and text commands for home automation",
        version="0.1.0",
    )
    app.state.source = source

    app.include_router(ingest.router, tags=["commands"])
    app.include_router(alexa.router, tags=["alexa"])
    app.include_router(health.router)

    return app


def create_command_source(config: Config) -> CommandSource:
    """Build the configured command source."""
    if config.audio_source == "file":
        return FileSource(config.audio_file_dir)

    return HTTPSource(
        host=config.http_host,
        port=config.http_port,
        auth_token=config.http_auth_token,
        queue_size=config.http_queue_size,
        rate_limit=config.http_rate_limit,
        rate_window=config.http_rate_window,
        shutdown_grace=config.http_shutdown_grace,
    )


def create_stt_client(config: Config) -> SpeechToText:
    """Build the transcription client; NoopSTT without an OpenAI key."""
    if not config.openai_api_key:
        logger.warning("OPENAI_API_KEY not set, audio commands will fail (text still works)")
        return NoopSTT()

    return OpenAIWhisperClient(
        api_key=config.openai_api_key,
        language=config.openai_language,
        base_url=config.openai_base_url,
        timeout=config.http_client_timeout,
        retry_policy=config.retry_policy(),
    )


def create_intent_parser(config: Config) -> IntentParser:
    """Build the intent parser, preferring Anthropic over Gemini.

    Raises:
        ConfigurationError: If neither API key is configured
    """
    if config.anthropic_api_key:
        logger.info(f"Intent parser: Anthropic ({config.anthropic_model})")
        return AnthropicIntentParser(
            api_key=config.anthropic_api_key,
            model=config.anthropic_model,
            base_url=config.anthropic_base_url,
            timeout=config.http_client_timeout,
            retry_policy=config.retry_policy(),
        )

    if config.gemini_api_key:
        logger.info(f"Intent parser: Gemini ({config.gemini_model})")
        return GeminiIntentParser(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            base_url=config.gemini_base_url,
            timeout=config.http_client_timeout,
            retry_policy=config.retry_policy(),
        )

    raise ConfigurationError("no intent parser configured (set ANTHROPIC_API_KEY or GEMINI_API_KEY)")


def create_iot_backend(config: Config) -> tuple[DeviceController, DeviceRegistry]:
    """Build the device backend and a registry over it.

    Raises:
        ConfigurationError: If the selected backend lacks credentials
    """
    backend: HomeAssistantClient | TuyaClient
    if config.iot_backend == "tuya":
        if not config.tuya_client_id or not config.tuya_secret:
            raise ConfigurationError("tuya backend requires TUYA_CLIENT_ID and TUYA_SECRET")
        backend = TuyaClient(
            client_id=config.tuya_client_id,
            secret=config.tuya_secret,
            region=config.tuya_region,
            timeout=config.http_client_timeout,
            retry_policy=config.retry_policy(),
        )
    else:
        if not config.homeassistant_token:
            raise ConfigurationError("homeassistant backend requires HOMEASSISTANT_TOKEN")
        backend = HomeAssistantClient(
            base_url=config.homeassistant_url,
            token=config.homeassistant_token,
            timeout=config.http_client_timeout,
            retry_policy=config.retry_policy(),
        )

    logger.info(f"Device backend: {config.iot_backend}")
    return backend, DeviceRegistry(backend)


def create_notifier(config: Config) -> Notifier:
    """Build the notifier; NoopNotifier unless Pushover is enabled."""
    if config.pushover_enabled:
        return PushoverNotifier(
            token=config.pushover_token,
            user_key=config.pushover_user_key,
            timeout=config.http_client_timeout,
            retry_policy=config.retry_policy(),
        )
    return NoopNotifier()


def create_assistant(config: Config) -> Assistant:
    """Build the pipeline and all of its collaborators."""
    controller, registry = create_iot_backend(config)
    return Assistant(
        source=create_command_source(config),
        stt=create_stt_client(config),
        intent_parser=create_intent_parser(config),
        controller=controller,
        registry=registry,
        notifier=create_notifier(config),
    )


async def serve(config: Config) -> None:
    """Run the assistant until SIGINT/SIGTERM.

    Args:
        config: Application configuration

    Raises:
        StartupError: If the initial registry sync or source start fails
        ConfigurationError: If a collaborator cannot be built
    """
    assistant = create_assistant(config)

    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()
    assert main_task is not None

    stopping = False

    def shutdown() -> None:
        nonlocal stopping
        if stopping:
            return
        stopping = True
        logger.info("Shutdown signal received")
        main_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown)
        except NotImplementedError:
            # Windows: fall back to KeyboardInterrupt
            pass

    sync_task: asyncio.Task[None] | None = None
    if config.registry_sync_interval > 0:
        sync_task = assistant.registry.start_periodic_sync(config.registry_sync_interval)

    logger.info("Voice Gateway starting up")
    try:
        await assistant.run()
    except asyncio.CancelledError:
        logger.info("Voice Gateway shutting down")
    finally:
        if sync_task is not None:
            sync_task.cancel()
            await asyncio.gather(sync_task, return_exceptions=True)
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass
