"""Tests for application wiring and the command-line entry point."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from voice_gateway.__main__ import main
from voice_gateway.core.interfaces import ConfigurationError
from voice_gateway.main import (
    create_assistant,
    create_command_source,
    create_intent_parser,
    create_iot_backend,
    create_notifier,
    create_stt_client,
    setup_logging,
)
from voice_gateway.models import Config
from voice_gateway.services.anthropic_client import AnthropicIntentParser
from voice_gateway.services.file_source import FileSource
from voice_gateway.services.gemini_client import GeminiIntentParser
from voice_gateway.services.homeassistant_client import HomeAssistantClient
from voice_gateway.services.http_source import HTTPSource
from voice_gateway.services.notifier import NoopNotifier, PushoverNotifier
from voice_gateway.services.stt_client import NoopSTT, OpenAIWhisperClient
from voice_gateway.services.tuya_client import TuyaClient


def make_config(**overrides: object) -> Config:
    """Config isolated from any credentials in the environment."""
    values: dict[str, object] = {
        "openai_api_key": "",
        "anthropic_api_key": "",
        "gemini_api_key": "",
        "homeassistant_token": "",
        "tuya_client_id": "",
        "tuya_secret": "",
        "pushover_enabled": False,
    }
    values.update(overrides)
    return Config(**values)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestFactories:
    def test_http_source_by_default(self) -> None:
        source = create_command_source(make_config(http_queue_size=4, http_auth_token="s3cret"))

        assert isinstance(source, HTTPSource)
        assert source.queue.maxsize == 4
        assert source.auth_token == "s3cret"

    def test_file_source(self, tmp_path: Path) -> None:
        source = create_command_source(make_config(audio_source="file", audio_file_dir=str(tmp_path)))

        assert isinstance(source, FileSource)
        assert source.directory == tmp_path

    def test_stt_without_key(self) -> None:
        assert isinstance(create_stt_client(make_config()), NoopSTT)

    def test_stt_with_key(self) -> None:
        client = create_stt_client(make_config(openai_api_key="sk", openai_language="en"))

        assert isinstance(client, OpenAIWhisperClient)
        assert client.language == "en"

    def test_intent_parser_prefers_anthropic(self) -> None:
        parser = create_intent_parser(make_config(anthropic_api_key="a", gemini_api_key="g"))

        assert isinstance(parser, AnthropicIntentParser)

    def test_intent_parser_gemini(self) -> None:
        assert isinstance(create_intent_parser(make_config(gemini_api_key="g")), GeminiIntentParser)

    def test_intent_parser_missing(self) -> None:
        with pytest.raises(ConfigurationError):
            create_intent_parser(make_config())

    def test_homeassistant_backend(self) -> None:
        backend, registry = create_iot_backend(make_config(homeassistant_token="t"))

        assert isinstance(backend, HomeAssistantClient)
        assert registry.catalog is backend

    def test_tuya_backend(self) -> None:
        backend, _ = create_iot_backend(
            make_config(iot_backend="tuya", tuya_client_id="id", tuya_secret="s", tuya_region="eu")
        )

        assert isinstance(backend, TuyaClient)
        assert backend.base_url == "https://openapi.tuyaeu.com"

    @pytest.mark.parametrize("backend", ["homeassistant", "tuya"])
    def test_backend_missing_credentials(self, backend: str) -> None:
        with pytest.raises(ConfigurationError):
            create_iot_backend(make_config(iot_backend=backend))

    def test_notifier(self) -> None:
        assert isinstance(create_notifier(make_config()), NoopNotifier)
        assert isinstance(
            create_notifier(make_config(pushover_enabled=True, pushover_token="t", pushover_user_key="u")),
            PushoverNotifier,
        )

    def test_create_assistant(self) -> None:
        assistant = create_assistant(make_config(homeassistant_token="t", anthropic_api_key="a"))

        assert isinstance(assistant.source, HTTPSource)
        assert isinstance(assistant.stt, NoopSTT)
        assert isinstance(assistant.intent_parser, AnthropicIntentParser)


class TestApp:
    def test_routes(self) -> None:
        source = HTTPSource()
        app = source.app

        assert app.url_path_for("submit_audio") == "/audio"
        assert app.url_path_for("submit_text") == "/text"
        assert app.url_path_for("alexa") == "/alexa"
        assert app.url_path_for("health_check") == "/health"
        assert source.app.state.source is source


class TestLogging:
    def test_json_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("INFO", "json")

        logging.getLogger("voice_gateway.test").info("hello")

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "voice_gateway.test"

    def test_replaces_handlers(self) -> None:
        setup_logging("DEBUG")
        setup_logging("WARNING")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING


class TestCli:
    def test_missing_config_file(self, tmp_path: Path) -> None:
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 2

    def test_invalid_config_value(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("http:\n  queue_size: 0\n")

        assert main(["-c", str(path)]) == 2

    def test_startup_failure(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("anthropic_api_key: a\nhomeassistant_token: ''\n")

        assert main(["-c", str(path)]) == 1

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("http: [unterminated\n")

        assert main(["-c", str(path)]) == 2
