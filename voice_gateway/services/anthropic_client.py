"""Anthropic Messages API intent parser."""

from __future__ import annotations

import logging

import httpx

from voice_gateway.core.interfaces import MalformedResponseError
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

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicIntentParser:
    """Intent parser backed by Claude."""

    service = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str = "https://api.anthropic.com/v1",
        timeout: float = 30.0,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Anthropic client.

        Args:
            api_key: Anthropic API key
            model: Model name
            base_url: API base URL
            timeout: Per-request timeout in seconds
            retry_policy: Retry configuration for each request
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_policy = retry_policy
        self._transport = transport

    async def parse_intent(self, text: str, registry_summary: str) -> Command:
        """Parse a user utterance into a Command.

        Args:
            text: User utterance
            registry_summary: Device/scene listing for the prompt

        Returns:
            Parsed command

        Raises:
            RemoteServiceError: If the API keeps failing
            MalformedResponseError: If the reply has no usable intent
        """
        body = {
            "model": self.model,
            "max_tokens": MAX_OUTPUT_TOKENS,
            "system": build_system_prompt(registry_summary),
            "messages": [{"role": "user", "content": text}],
        }
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

        async def call() -> dict:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.base_url}/messages", json=body, headers=headers)
            raise_for_remote_status(response, self.service)
            return response.json()

        data = await with_retry(self.retry_policy, call)

        content = data.get("content") or []
        if not content:
            raise MalformedResponseError("empty response from claude")

        response_text = content[0].get("text", "")
        logger.debug(f"Claude response: {response_text}")

        command = parse_intent_response(response_text, text)
        logger.info(f"Parsed intent: {command.action.value} -> '{command.target_name}'")
        return command
