"""Tests for tolerant JSON extraction from model responses."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from react_engine.domain.exceptions import ParseError
from react_engine.services.parsing import (
    first_json_object,
    parse_json_response,
    parse_model,
    sanitize_json_text,
)


class TestFirstJsonObject:
    """Balanced-brace extraction."""

    def test_returns_first_balanced_block(self) -> None:
        text = 'Here you go: {"a": {"b": 1}} and also {"c": 2}'
        assert first_json_object(text) == '{"a": {"b": 1}}'

    def test_ignores_braces_inside_strings(self) -> None:
        text = '{"note": "use {curly} braces", "n": 1} trailing'
        assert first_json_object(text) == '{"note": "use {curly} braces", "n": 1}'

    def test_handles_escaped_quotes(self) -> None:
        text = r'{"q": "say \"}\" now"} rest'
        assert first_json_object(text) == r'{"q": "say \"}\" now"}'

    def test_none_without_braces(self) -> None:
        assert first_json_object("no json here") is None

    def test_unbalanced_falls_back_to_last_brace(self) -> None:
        text = '{"a": {"b": 1}'
        assert first_json_object(text) == text


class TestParseJsonResponse:
    """Strict parse first, textual repairs second."""

    def test_plain_object(self) -> None:
        assert parse_json_response('{"thought": "ok", "confidence": 40}') == {
            "thought": "ok",
            "confidence": 40,
        }

    def test_object_wrapped_in_prose(self) -> None:
        text = 'Sure! Here is my answer:\n{"ready": true}\nLet me know.'
        assert parse_json_response(text) == {"ready": True}

    def test_fenced_trailing_comma(self) -> None:
        text = '```json\n{"a":1,}\n```'
        assert parse_json_response(text) == {"a": 1}

    def test_trailing_comma_in_array(self) -> None:
        assert parse_json_response('{"items": [1, 2, 3,]}') == {"items": [1, 2, 3]}

    def test_single_quoted_keys_and_values(self) -> None:
        assert parse_json_response("{'metric': 'arr'}") == {"metric": "arr"}

    def test_undefined_becomes_null(self) -> None:
        assert parse_json_response('{"value": undefined}') == {"value": None}

    def test_numeric_range_keeps_lower_bound(self) -> None:
        assert parse_json_response('{"confidence": 70-80}') == {"confidence": 70}

    def test_bool_placeholder_becomes_true(self) -> None:
        assert parse_json_response('{"ready_to_synthesize": true/false}') == {
            "ready_to_synthesize": True,
        }

    def test_json_stringify_call_replaced(self) -> None:
        data = parse_json_response('{"payload": JSON.stringify(data)}')
        assert data == {"payload": "[serialized data]"}

    def test_no_object_raises_parse_error(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_json_response("I could not decide.", context="next_step")
        err = exc_info.value
        assert "Failed to parse JSON in next_step" in str(err)
        assert err.context == "next_step"
        assert err.preview == "I could not decide."

    def test_preview_is_truncated_to_200_chars(self) -> None:
        text = "x" * 500
        with pytest.raises(ParseError) as exc_info:
            parse_json_response(text)
        assert len(exc_info.value.preview) == 200

    def test_preview_flattens_newlines(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_json_response("line one\nline two")
        assert "\n" not in exc_info.value.preview

    def test_unrepairable_text_raises(self) -> None:
        with pytest.raises(ParseError):
            parse_json_response("{this is : not json at all")


class TestSanitizeJsonText:
    def test_raises_value_error_without_object(self) -> None:
        with pytest.raises(ValueError, match="No JSON object found"):
            sanitize_json_text("nothing")

    def test_extracts_fence_body(self) -> None:
        assert sanitize_json_text('```\n{"a": 1}\n```') == '{"a": 1}'


class _Answer(BaseModel):
    verdict: str
    score: int


class TestParseModel:
    def test_validates_against_model(self) -> None:
        answer = parse_model('{"verdict": "healthy", "score": 7}', _Answer)
        assert answer == _Answer(verdict="healthy", score=7)

    def test_validation_failure_is_parse_error(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_model('{"verdict": "healthy"}', _Answer, context="synthesize")
        err = exc_info.value
        assert "Invalid _Answer in synthesize" in str(err)
        assert err.details["errors"]
