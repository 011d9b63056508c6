"""Speech-to-text clients.

OpenAIWhisperClient calls the hosted Whisper transcription endpoint.
NoopSTT is used when no OpenAI key is configured: text submissions still
work, audio submissions fail with a clear error.
"""

from __future__ import annotations

import logging

import httpx

from voice_gateway.core.interfaces import ConfigurationError, MalformedResponseError
from voice_gateway.services.retry import (
    DEFAULT_RETRY_POLICY,
    RetryPolicy,
    raise_for_remote_status,
    with_retry,
)

logger = logging.getLogger(__name__)


class NoopSTT:
    """Speech-to-text stand-in for deployments without transcription."""

    async def transcribe(self, audio: bytes) -> str:
        raise ConfigurationError("speech-to-text is not configured (set OPENAI_API_KEY)")


class OpenAIWhisperClient:
    """Client for the OpenAI audio transcription API."""

    service = "openai"

    def __init__(
        self,
        api_key: str,
        language: str = "es",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Whisper client.

        Args:
            api_key: OpenAI API key
            language: ISO-639-1 language hint sent with every request
            base_url: API base URL
            timeout: Per-request timeout in seconds
            retry_policy: Retry configuration for each request
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.language = language
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_policy = retry_policy
        self._transport = transport

        logger.info(f"Whisper client initialized with language={language}")

    async def transcribe(self, audio: bytes) -> str:
        """Transcribe audio bytes to text.

        Args:
            audio: Audio file contents (wav, mp3, m4a, webm)

        Returns:
            Transcribed text, trimmed

        Raises:
            RemoteServiceError: If the API keeps failing
            MalformedResponseError: If the reply has no ``text`` field
        """
        files = {"file": ("audio.wav", audio, "application/octet-stream")}
        data = {"model": "whisper-1", "language": self.language}
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async def call() -> dict:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/audio/transcriptions",
                    files=files,
                    data=data,
                    headers=headers,
                )
            raise_for_remote_status(response, self.service)
            return response.json()

        result = await with_retry(self.retry_policy, call)

        text = result.get("text")
        if not isinstance(text, str):
            raise MalformedResponseError("transcription response has no text")

        text = text.strip()
        logger.info(f"Transcription complete: text_length={len(text)}")
        return text
