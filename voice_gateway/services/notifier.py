"""Outbound notifiers.

Notifications are best effort: the pipeline logs a failed notify and
moves on.
"""

from __future__ import annotations

import logging

import httpx

from voice_gateway.services.retry import (
    DEFAULT_RETRY_POLICY,
    RetryPolicy,
    raise_for_remote_status,
    with_retry,
)

logger = logging.getLogger(__name__)

PUSHOVER_URL = "https://api.pushover.net/1/messages.json"
NOTIFICATION_TITLE = "Smart Home"


class NoopNotifier:
    """Notifier that discards every message."""

    async def notify(self, message: str) -> None:
        logger.debug(f"Notification dropped: {message}")


class PushoverNotifier:
    """Push notifications through the Pushover API.

    Does nothing when the token or user key is empty.
    """

    service = "pushover"

    def __init__(
        self,
        token: str,
        user_key: str,
        url: str = PUSHOVER_URL,
        timeout: float = 10.0,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self.user_key = user_key
        self.url = url
        self.timeout = timeout
        self.retry_policy = retry_policy
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.user_key)

    async def notify(self, message: str) -> None:
        """Send a notification.

        Args:
            message: Notification body

        Raises:
            RemoteServiceError: If Pushover keeps rejecting the request
        """
        if not self.enabled:
            return

        form = {
            "token": self.token,
            "user": self.user_key,
            "message": message,
            "title": NOTIFICATION_TITLE,
        }

        async def call() -> None:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, data=form)
            raise_for_remote_status(response, self.service)

        await with_retry(self.retry_policy, call)
        logger.debug("Pushover notification sent")
