"""Request authentication helpers."""

from voice_gateway.security.shared_secret import extract_token, verify_shared_secret

__all__ = ["extract_token", "verify_shared_secret"]
