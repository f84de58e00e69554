"""Export utilities for engine outputs and reasoning traces.

Turns the frozen result objects into plain JSON-compatible dicts so runs
can be audited, diffed or archived.  Standard library only.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from react_engine.domain.values import ReActOutput, ReasoningStep, ReasoningTrace


def to_plain(value: Any) -> Any:
    """Recursively convert engine values into JSON-compatible data."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(v) for v in value]
    return value


# ---------------------------------------------------------------------------
# Dict views
# ---------------------------------------------------------------------------

def step_to_dict(step: ReasoningStep) -> dict[str, Any]:
    return to_plain(step)


def trace_to_dict(trace: ReasoningTrace) -> dict[str, Any]:
    """Serialize a trace, adding its derived action counts."""
    data = to_plain(trace)
    data["actions_taken"] = trace.actions_taken
    data["successful_actions"] = trace.successful_actions
    return data


def output_to_dict(output: ReActOutput[Any]) -> dict[str, Any]:
    data = to_plain(output)
    data["reasoning_trace"] = trace_to_dict(output.reasoning_trace)
    return data


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def export_json(output: ReActOutput[Any], path: str) -> None:
    """Export an engine output (with its trace) to a JSON file.

    Parameters
    ----------
    output:
        The output to export.
    path:
        File path for the JSON output.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as fh:
        json.dump(output_to_dict(output), fh, indent=2, default=str)


def output_to_json(output: ReActOutput[Any]) -> str:
    return json.dumps(output_to_dict(output), indent=2, default=str)
