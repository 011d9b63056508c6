"""Application configuration and HTTP payload models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from voice_gateway.services.retry import RetryPolicy


class Config(BaseSettings):
    """Gateway configuration.

    Values come from environment variables (case-insensitive, e.g.
    ``HOMEASSISTANT_TOKEN``) and can be overridden by keyword arguments,
    which is how the YAML loader applies a config file.
    """

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["text", "json"] = Field(default="text")

    # Command source
    audio_source: Literal["http", "file"] = Field(default="http")
    audio_file_dir: str = Field(default="./audio")

    # HTTP ingestion
    http_host: str = Field(default="0.0.0.0")
    http_port: int = Field(default=8080)
    http_auth_token: str = Field(default="", description="Shared secret for /alexa")
    http_queue_size: int = Field(default=10, ge=1)
    http_rate_limit: int = Field(default=30, ge=1, description="Requests per window per client")
    http_rate_window: float = Field(default=60.0, gt=0, description="Rate limit window in seconds")
    http_shutdown_grace: float = Field(default=10.0, ge=0)

    # Speech-to-text (OpenAI Whisper)
    openai_api_key: str = Field(default="")
    openai_language: str = Field(default="es")
    openai_base_url: str = Field(default="https://api.openai.com/v1")

    # Intent parsing
    anthropic_api_key: str = Field(default="")
    anthropic_model: str = Field(default="claude-sonnet-4-20250514")
    anthropic_base_url: str = Field(default="https://api.anthropic.com/v1")
    gemini_api_key: str = Field(default="")
    gemini_model: str = Field(default="gemini-2.0-flash")
    gemini_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")

    # Device backend
    iot_backend: Literal["homeassistant", "tuya"] = Field(default="homeassistant")
    homeassistant_url: str = Field(default="http://homeassistant:8123")
    homeassistant_token: str = Field(default="")
    tuya_client_id: str = Field(default="")
    tuya_secret: str = Field(default="")
    tuya_region: str = Field(default="us")
    registry_sync_interval: float = Field(
        default=300.0,
        ge=0,
        description="Seconds between registry syncs (0 disables periodic sync)",
    )

    # Notifications
    pushover_enabled: bool = Field(default=False)
    pushover_token: str = Field(default="")
    pushover_user_key: str = Field(default="")

    # Remote calls
    http_client_timeout: float = Field(default=30.0, gt=0)
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_initial_delay: float = Field(default=0.1, ge=0)
    retry_max_delay: float = Field(default=5.0, ge=0)
    retry_multiplier: float = Field(default=2.0, ge=1.0)
    retry_only_transient: bool = Field(
        default=False,
        description="Do not retry errors marked permanent (4xx, backend rejections)",
    )

    def retry_policy(self) -> RetryPolicy:
        """Build the retry policy shared by all remote adapters."""
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            initial_delay=self.retry_initial_delay,
            max_delay=self.retry_max_delay,
            backoff_multiplier=self.retry_multiplier,
            only_transient=self.retry_only_transient,
        )


class ReceivedResponse(BaseModel):
    """Body returned by /audio and /text when a payload was queued."""

    status: Literal["received"] = "received"
    bytes: int | None = None
    text: str | None = None


class HealthResponse(BaseModel):
    """Body returned by /health."""

    status: Literal["ok", "not_ready"]
    running: bool
    queue_size: int


class AlexaSlot(BaseModel):
    value: str | None = None


class AlexaIntent(BaseModel):
    name: str = ""
    slots: dict[str, AlexaSlot] = Field(default_factory=dict)


class AlexaRequestBody(BaseModel):
    type: str = ""
    intent: AlexaIntent = Field(default_factory=AlexaIntent)


class AlexaRequest(BaseModel):
    """Subset of the Alexa skill request envelope the webhook reads."""

    version: str = ""
    request: AlexaRequestBody = Field(default_factory=AlexaRequestBody)

    def command_text(self) -> str | None:
        """Return the ``command`` slot value, if present and non-empty."""
        slot = self.request.intent.slots.get("command")
        if slot is None or not slot.value:
            return None
        return slot.value


def alexa_response(text: str, end_session: bool) -> dict[str, Any]:
    """Build a plain-text Alexa speech response.

    Args:
        text: Sentence Alexa should speak
        end_session: Whether the skill session should close

    Returns:
        Alexa response envelope
    """
    return {
        "version": "1.0",
        "response": {
            "outputSpeech": {"type": "PlainText", "text": text},
            "shouldEndSession": end_session,
        },
    }
