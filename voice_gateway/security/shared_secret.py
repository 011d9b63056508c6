"""Shared-secret verification for webhook callers."""

from __future__ import annotations

import hmac

from fastapi import Request

AUTH_HEADER = "X-Auth-Token"
AUTH_QUERY_PARAM = "token"


def extract_token(request: Request) -> str:
    """Get the caller's token from the header, else the query string."""
    token = request.headers.get(AUTH_HEADER, "")
    if not token:
        token = request.query_params.get(AUTH_QUERY_PARAM, "")
    return token


def verify_shared_secret(provided: str, expected: str) -> bool:
    """Compare a provided token with the configured secret.

    An empty ``expected`` secret disables the check.

    Args:
        provided: Token sent by the caller
        expected: Configured secret

    Returns:
        True if the caller is authorized
    """
    if not expected:
        return True
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
