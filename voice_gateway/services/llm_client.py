"""Shared prompt for the LLM intent parsers.

Anthropic and Gemini receive the same system prompt: instructions plus
the registry summary, so the model answers with names that exist.
"""

from __future__ import annotations

SYSTEM_PROMPT_TEMPLATE = """You are a smart home assistant. Your task is to interpret voice commands and extract the intent.

{registry_summary}

IMPORTANT:
- If the user mentions a scene, use target_type "scene"
- If the user mentions a device, use target_type "device"
- Use the EXACT name of the device or scene as it appears in the list
- If you don't understand the command, use action "unknown"
- The user may speak in English or Spanish, understand both

Respond ONLY with valid JSON (no markdown, no backticks):
{{
  "action": "turn_on|turn_off|set_level|set_color|run_scene|get_status|unknown",
  "target_name": "exact device or scene name",
  "target_type": "device|scene",
  "parameters": {{"level": 50, "color": "red"}},
  "confidence": 0.95
}}"""

MAX_OUTPUT_TOKENS = 256


def build_system_prompt(registry_summary: str) -> str:
    """Render the system prompt for the current registry contents."""
    return SYSTEM_PROMPT_TEMPLATE.format(registry_summary=registry_summary)
