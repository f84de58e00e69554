"""Tolerant JSON extraction from model responses.

Models asked for JSON often wrap it in prose or a markdown fence, or write
JavaScript-flavoured almost-JSON.  ``parse_json_response`` first tries a
strict parse of the first balanced ``{...}`` block and, failing that,
applies a fixed sequence of textual repairs before parsing again.

Everything here is pure and stateless.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from react_engine.domain.exceptions import ParseError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

PREVIEW_CHARS = 200

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_OUTERMOST_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_STRINGIFY = re.compile(r"JSON\.stringify\s*\([^)]*\)")
_TEMPLATE_LITERAL = re.compile(r"`([^`]*)`")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_SINGLE_QUOTED_KEY = re.compile(r"'([^']+)'\s*:")
_SINGLE_QUOTED_VALUE = re.compile(r":\s*'([^']*)'")
_UNDEFINED_VALUE = re.compile(r":\s*undefined\b")
_NUMERIC_RANGE = re.compile(r":\s*(\d+)-(\d+)(\s*[,}\]])")
_BOOL_PLACEHOLDER = re.compile(r":\s*true/false", re.IGNORECASE)


def first_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` block of *text*.

    Braces inside double-quoted strings are ignored.  When no block
    balances, the span from the first ``{`` to the last ``}`` is returned;
    ``None`` when there is no such span.
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    end = text.rfind("}")
    if end > start:
        return text[start:end + 1]
    return None


def sanitize_json_text(text: str) -> str:
    """Apply the textual repairs to *text* and return candidate JSON.

    Raises
    ------
    ValueError
        If no ``{...}`` span can be found.
    """
    fence = _FENCE.search(text)
    if fence:
        text = fence.group(1)

    match = _OUTERMOST_OBJECT.search(text)
    if match is None:
        raise ValueError("No JSON object found in response")
    candidate = match.group(0)

    candidate = _JSON_STRINGIFY.sub('"[serialized data]"', candidate)
    candidate = _TEMPLATE_LITERAL.sub(r'"\1"', candidate)
    candidate = _TRAILING_COMMA.sub(r"\1", candidate)
    candidate = _SINGLE_QUOTED_KEY.sub(r'"\1":', candidate)
    candidate = _SINGLE_QUOTED_VALUE.sub(r': "\1"', candidate)
    candidate = _UNDEFINED_VALUE.sub(": null", candidate)
    candidate = _NUMERIC_RANGE.sub(r": \1\3", candidate)
    candidate = _BOOL_PLACEHOLDER.sub(": true", candidate)
    return candidate


def _preview(text: str) -> str:
    return text[:PREVIEW_CHARS].replace("\r", " ").replace("\n", " ")


def parse_json_response(text: str, context: str = "response") -> dict[str, Any]:
    """Extract a JSON object from a model response.

    Parameters
    ----------
    text:
        Raw model output.
    context:
        Name of the stage asking for the parse, used in error messages.

    Raises
    ------
    ParseError
        If neither the strict nor the repaired parse yields an object.
    """
    block = first_json_object(text)
    if block is not None:
        try:
            data = json.loads(block)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(data, dict):
                return data

    try:
        data = json.loads(sanitize_json_text(text))
    except (ValueError, json.JSONDecodeError) as exc:
        preview = _preview(text)
        raise ParseError(
            f"Failed to parse JSON in {context}: {exc}. Preview: {preview}...",
            context=context,
            preview=preview,
        ) from exc

    if not isinstance(data, dict):
        preview = _preview(text)
        raise ParseError(
            f"Failed to parse JSON in {context}: expected an object, "
            f"got {type(data).__name__}. Preview: {preview}...",
            context=context,
            preview=preview,
        )
    logger.debug("parse_json_response: repaired malformed JSON in %s", context)
    return data


def parse_model(text: str, model: type[M], context: str = "response") -> M:
    """Parse *text* and validate it as *model*.

    Raises
    ------
    ParseError
        On a parse failure or a pydantic validation failure.
    """
    data = parse_json_response(text, context)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        preview = _preview(text)
        raise ParseError(
            f"Invalid {model.__name__} in {context}: "
            f"{exc.error_count()} validation error(s). Preview: {preview}...",
            context=context,
            preview=preview,
            details={"errors": exc.errors(include_url=False)},
        ) from exc
