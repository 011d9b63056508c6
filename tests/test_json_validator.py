"""Tests for LLM response parsing."""

from __future__ import annotations

import pytest

from voice_gateway.core.interfaces import MalformedResponseError
from voice_gateway.core.models import Action, TargetType
from voice_gateway.utils.json_validator import extract_json, parse_intent_response, strip_code_fences


class TestStripCodeFences:
    def test_json_fence(self) -> None:
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self) -> None:
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self) -> None:
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


class TestExtractJson:
    def test_surrounding_text(self) -> None:
        assert extract_json('Sure! {"action": "turn_on"} Hope that helps') == '{"action": "turn_on"}'

    def test_no_object(self) -> None:
        assert extract_json("no json here") is None


class TestParseIntentResponse:
    """Tests for parse_intent_response."""

    def test_scene_command(self) -> None:
        command = parse_intent_response(
            '{"action": "run_scene", "target_name": "Buenas Noches", "target_type": "scene", '
            '"parameters": null, "confidence": 0.9}',
            "activá buenas noches",
        )

        assert command.action == Action.RUN_SCENE
        assert command.target_type == TargetType.SCENE
        assert command.parameters == {}
        assert command.raw_text == "activá buenas noches"

    def test_set_level_parameters(self) -> None:
        command = parse_intent_response(
            '{"action": "set_level", "target_name": "Luz Living", "parameters": {"level": 30}}',
            "bajá la luz al 30",
        )

        assert command.parameters == {"level": 30}
        assert command.target_type == TargetType.DEVICE

    def test_unrecognized_action_is_unknown(self) -> None:
        command = parse_intent_response('{"action": "make_coffee", "target_name": "x"}', "hacé café")

        assert command.is_unknown

    def test_model_cannot_set_target_id(self) -> None:
        command = parse_intent_response('{"action": "turn_on", "target_name": "x", "target_id": "evil"}', "t")

        assert command.target_id == ""

    @pytest.mark.parametrize(
        "response_text",
        [
            "I could not understand that",
            '{"action": "turn_on", "target_name": }',
            '{"action": "turn_on", "confidence": "very"}',
        ],
    )
    def test_malformed(self, response_text: str) -> None:
        with pytest.raises(MalformedResponseError):
            parse_intent_response(response_text, "x")
