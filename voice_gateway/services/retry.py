"""Retry with exponential backoff for remote service calls.

Every adapter wraps its HTTP round trips in ``with_retry`` so that the
pipeline and registry never implement backoff themselves.

Retry semantics:
- up to ``max_attempts`` calls
- delay starts at ``initial_delay``, grows by ``backoff_multiplier``,
  capped at ``max_delay``
- cancellation and asyncio timeouts are never retried
- the backoff wait is an ordinary ``await`` and is cancellable
- after the final attempt the last exception is re-raised
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from voice_gateway.core.interfaces import RemoteServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry configuration."""

    max_attempts: int = 3
    initial_delay: float = 0.1
    max_delay: float = 5.0
    backoff_multiplier: float = 2.0
    # Stop on errors marked non-retryable (e.g. 4xx) instead of retrying all
    only_transient: bool = False

    def delay_for(self, attempt: int) -> float:
        """Get the wait after the given failed attempt (1-based).

        Args:
            attempt: Number of the attempt that just failed

        Returns:
            Seconds to wait before the next attempt
        """
        delay = self.initial_delay * self.backoff_multiplier ** (attempt - 1)
        return min(delay, self.max_delay)


DEFAULT_RETRY_POLICY = RetryPolicy()


def is_retryable_status(status_code: int) -> bool:
    """Check if an HTTP status code indicates a transient failure.

    Args:
        status_code: HTTP response status

    Returns:
        True for 429 and any 5xx (which covers 503 and 504)
    """
    return status_code == 429 or status_code >= 500


def raise_for_remote_status(response: httpx.Response, service: str) -> None:
    """Raise RemoteServiceError for non-2xx responses.

    Args:
        response: Response to check
        service: Service name for the error message

    Raises:
        RemoteServiceError: If the response status is 4xx/5xx
    """
    if response.status_code < 400:
        return
    retryable = is_retryable_status(response.status_code)
    suffix = " (retryable)" if retryable else ""
    raise RemoteServiceError(
        f"API error {response.status_code}{suffix}: {response.text[:200]}",
        service=service,
        status_code=response.status_code,
        retryable=retryable,
    )


def _should_retry(
    retryable: Callable[[BaseException], bool] | None,
) -> Callable[[BaseException], bool]:
    def predicate(exc: BaseException) -> bool:
        # CancelledError is a BaseException and falls through here
        if not isinstance(exc, Exception):
            return False
        if isinstance(exc, asyncio.TimeoutError):
            return False
        if retryable is not None:
            return retryable(exc)
        return True

    return predicate


async def with_retry(
    policy: RetryPolicy,
    operation: Callable[[], Awaitable[T]],
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    retryable: Callable[[BaseException], bool] | None = None,
) -> T:
    """Run an async operation with exponential backoff.

    Args:
        policy: Retry configuration
        operation: Zero-argument coroutine factory, called once per attempt
        sleep: Awaitable sleep used between attempts
        retryable: Optional predicate narrowing which exceptions are retried.
            Defaults to ``only_transient`` when the policy sets it, else
            every Exception except asyncio timeouts is retried.

    Returns:
        Result of the first successful attempt

    Raises:
        asyncio.CancelledError: If cancelled during an attempt or a wait
        Exception: The last failure once attempts are exhausted
    """
    if retryable is None and policy.only_transient:
        retryable = only_transient

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(
            multiplier=policy.initial_delay,
            exp_base=policy.backoff_multiplier,
            max=policy.max_delay,
            min=0,
        ),
        retry=retry_if_exception(_should_retry(retryable)),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            result = await operation()
    return result


def only_transient(exc: BaseException) -> bool:
    """Retry predicate that skips permanent remote failures.

    Applied when ``RetryPolicy.only_transient`` is set, or pass it as
    ``retryable`` explicitly.
    """
    if isinstance(exc, RemoteServiceError):
        return exc.retryable
    return True
