"""YAML configuration loader.

A config file is optional: every setting also comes from the environment.
Nested sections are flattened onto Config field names, so

    http:
      port: 9090
    tuya:
      client_id: ${TUYA_CLIENT_ID}

sets ``http_port`` and ``tuya_client_id``. ``${VAR}`` references are
expanded from the environment (unset variables become empty strings).
Values from the file override the environment.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from voice_gateway.core.interfaces import ConfigurationError
from voice_gateway.models import Config

logger = logging.getLogger(__name__)

_ENV_VAR = re.compile(r"\$\{([^}]+)\}")


def expand_env(value: Any) -> Any:
    """Recursively replace ``${VAR}`` in strings with environment values."""
    if isinstance(value, str):
        return _ENV_VAR.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env(v) for v in value]
    return value


def flatten_sections(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten ``{"http": {"port": 1}}`` into ``{"http_port": 1}``."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}_{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(flatten_sections(value, name))
        else:
            flat[name] = value
    return flat


def load_config(path: str | Path | None = None) -> Config:
    """Build the configuration from the environment and an optional file.

    Args:
        path: YAML file; None uses the environment only

    Returns:
        Validated Config

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML or is
            not a mapping
        pydantic.ValidationError: If a value has the wrong type
    """
    if path is None:
        return Config()

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"config file not found: {config_path}")

    logger.info(f"Loading config from: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"config file must contain a mapping: {config_path}")

    overrides = flatten_sections(expand_env(data))
    known = {k: v for k, v in overrides.items() if k in Config.model_fields}
    unknown = sorted(set(overrides) - set(known))
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

    return Config(**known)
