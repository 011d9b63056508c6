"""Shared dependencies for API routers."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from voice_gateway.services.http_source import HTTPSource
from voice_gateway.services.rate_limiter import get_client_ip


class PayloadTooLargeError(Exception):
    """Raised when a request body exceeds its endpoint's limit."""

    pass


def get_http_source(request: Request) -> HTTPSource:
    """Dependency to get the HTTP source owning this app.

    Args:
        request: FastAPI request object

    Returns:
        HTTPSource stored on app state
    """
    return request.app.state.source


def is_rate_limited(request: Request, source: HTTPSource) -> bool:
    """Consume one token for the caller; True if the caller is over quota."""
    return not source.rate_limiter.allow(get_client_ip(request))


async def enforce_rate_limit(
    request: Request,
    source: HTTPSource = Depends(get_http_source),
) -> None:
    """Dependency rejecting callers over their rate limit.

    Raises:
        HTTPException: 429 when the client exceeded its quota
    """
    if is_rate_limited(request, source):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="rate limit exceeded",
        )


async def read_body_limited(request: Request, limit: int) -> bytes:
    """Read the request body, refusing anything larger than ``limit``.

    Args:
        request: Incoming request
        limit: Maximum accepted body size in bytes

    Returns:
        Body bytes

    Raises:
        PayloadTooLargeError: If the body exceeds the limit
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(f"body exceeds {limit} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLargeError(f"body exceeds {limit} bytes")
    return bytes(body)
