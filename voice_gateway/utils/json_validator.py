"""JSON validation utilities for LLM intent responses.

Models are asked for bare JSON but regularly wrap it in markdown code
fences or add a sentence around it. These helpers recover the object and
validate it into a Command.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from voice_gateway.core.interfaces import MalformedResponseError
from voice_gateway.core.models import Command

logger = logging.getLogger(__name__)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` or ``` ... ``` fence.

    Args:
        text: Raw model output

    Returns:
        Text without the fence, trimmed
    """
    text = text.strip()
    if text.startswith("```json"):
        text = text[len("```json"):]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def extract_json(text: str) -> str | None:
    """Extract JSON from text that may contain additional content.

    Args:
        text: Raw text that should contain JSON

    Returns:
        Extracted JSON string, or None if no JSON object found
    """
    start = text.find("{")
    end = text.rfind("}")

    if start == -1 or end == -1 or end <= start:
        return None

    return text[start : end + 1]


def parse_intent_response(response_text: str, raw_text: str) -> Command:
    """Parse an LLM response into a Command.

    Args:
        response_text: Model output, possibly fenced or padded
        raw_text: User utterance the model was asked about

    Returns:
        Parsed command with ``raw_text`` set

    Raises:
        MalformedResponseError: If no valid intent object can be read
    """
    cleaned = strip_code_fences(response_text)
    json_str = extract_json(cleaned)
    if json_str is None:
        raise MalformedResponseError(f"parsing intent JSON ({cleaned}): no JSON object found")

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"parsing intent JSON ({json_str}): {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponseError(f"parsing intent JSON ({json_str}): not an object")

    logger.debug(f"Parsed intent JSON: {data}")

    data.pop("target_id", None)
    data["raw_text"] = raw_text
    data.setdefault("action", "unknown")

    try:
        return Command.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"invalid intent schema: {e}") from e
