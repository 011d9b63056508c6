"""Google Gemini intent parser."""

from __future__ import annotations

import logging

import httpx

from voice_gateway.core.interfaces import MalformedResponseError, RemoteServiceError
from voice_gateway.core.models import Command
from voice_gateway.services.llm_client import MAX_OUTPUT_TOKENS, build_system_prompt
from voice_gateway.services.retry import (
    DEFAULT_RETRY_POLICY,
    RetryPolicy,
    raise_for_remote_status,
    with_retry,
)
from voice_gateway.utils.json_validator import parse_intent_response

logger = logging.getLogger(__name__)


class GeminiIntentParser:
    """Intent parser backed by the Gemini generateContent API."""

    service = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30.0,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_policy = retry_policy
        self._transport = transport

    async def parse_intent(self, text: str, registry_summary: str) -> Command:
        """Parse a user utterance into a Command.

        Raises:
            RemoteServiceError: If the API keeps failing or reports an error
            MalformedResponseError: If the reply has no usable intent
        """
        body = {
            "systemInstruction": {"parts": [{"text": build_system_prompt(registry_summary)}]},
            "contents": [{"role": "user", "parts": [{"text": text}]}],
            "generationConfig": {"maxOutputTokens": MAX_OUTPUT_TOKENS, "temperature": 0.1},
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"

        async def call() -> dict:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, params={"key": self.api_key}, json=body)
            raise_for_remote_status(response, self.service)
            return response.json()

        data = await with_retry(self.retry_policy, call)

        error = data.get("error")
        if error:
            raise RemoteServiceError(
                f"gemini error: {error.get('message', '')}",
                service=self.service,
                retryable=False,
            )

        candidates = data.get("candidates") or []
        parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
        if not parts:
            raise MalformedResponseError("empty response from gemini")

        response_text = parts[0].get("text", "")
        logger.debug(f"Gemini response: {response_text}")

        command = parse_intent_response(response_text, text)
        logger.info(f"Parsed intent: {command.action.value} -> '{command.target_name}'")
        return command
