"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from voice_gateway.core.interfaces import ConfigurationError
from voice_gateway.models import Config
from voice_gateway.services.config_loader import expand_env, flatten_sections, load_config
from voice_gateway.services.retry import RetryPolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HTTP_PORT", "HOMEASSISTANT_TOKEN", "IOT_BACKEND", "HA_TOKEN_FOR_TEST"):
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    def test_defaults(self) -> None:
        config = Config()

        assert config.http_port == 8080
        assert config.http_queue_size == 10
        assert config.http_rate_limit == 30
        assert config.http_rate_window == 60.0
        assert config.iot_backend == "homeassistant"
        assert config.log_format == "text"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HTTP_PORT", "9090")
        monkeypatch.setenv("IOT_BACKEND", "tuya")

        config = Config()

        assert config.http_port == 9090
        assert config.iot_backend == "tuya"

    def test_retry_policy(self) -> None:
        config = Config(retry_max_attempts=5, retry_initial_delay=0.5, retry_max_delay=2.0)

        assert config.retry_policy() == RetryPolicy(
            max_attempts=5,
            initial_delay=0.5,
            max_delay=2.0,
            backoff_multiplier=2.0,
        )

    def test_retry_only_transient(self) -> None:
        assert Config().retry_policy().only_transient is False
        assert Config(retry_only_transient=True).retry_policy().only_transient is True


class TestConfigLoader:
    def test_flatten_sections(self) -> None:
        assert flatten_sections({"http": {"port": 1, "auth_token": "x"}, "log_level": "DEBUG"}) == {
            "http_port": 1,
            "http_auth_token": "x",
            "log_level": "DEBUG",
        }

    def test_expand_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HA_TOKEN_FOR_TEST", "secret")

        assert expand_env({"token": "${HA_TOKEN_FOR_TEST}", "list": ["${MISSING_VAR_XYZ}"]}) == {
            "token": "secret",
            "list": [""],
        }

    def test_load_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HA_TOKEN_FOR_TEST", "abc123")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "http:\n"
            "  port: 9191\n"
            "  queue_size: 5\n"
            "homeassistant:\n"
            "  url: http://ha.local:8123\n"
            "  token: ${HA_TOKEN_FOR_TEST}\n"
            "log:\n"
            "  format: json\n"
            "something_else: 1\n",
            encoding="utf-8",
        )

        config = load_config(config_file)

        assert config.http_port == 9191
        assert config.http_queue_size == 5
        assert config.homeassistant_url == "http://ha.local:8123"
        assert config.homeassistant_token == "abc123"
        assert config.log_format == "json"

    def test_load_without_path_uses_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HTTP_PORT", "7070")

        assert load_config(None).http_port == 7070

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "nope.yaml")

    def test_non_mapping_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(config_file)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("http:\n  port: [8080\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="invalid YAML"):
            load_config(config_file)
