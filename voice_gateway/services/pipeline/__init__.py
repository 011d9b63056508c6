"""Command processing pipeline."""

from voice_gateway.services.pipeline.assistant import Assistant

__all__ = ["Assistant"]
