"""Per-run working memory for the ReAct engine.

``MemoryManager`` holds what one run has learned so far:

* **insights** -- confidence-weighted facts keyed by name (last write wins),
* **failed attempts** -- tool calls that failed and must not be repeated
  with the same parameters,
* **alternatives** -- backtracking suggestions queued after a failure,
  highest priority first.

One instance per run; it is never shared between runs.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from react_engine.domain.values import AlternativeAction, FailedAttempt, MemoryInsight

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_THRESHOLD = 70.0
PROMPT_INSIGHT_THRESHOLD = 60.0


def call_signature(tool_name: str, parameters: Mapping[str, Any]) -> str:
    """Structural identity of a tool call (sorted-keys JSON)."""
    return f"{tool_name}:{json.dumps(parameters, sort_keys=True, default=str)}"


def _render_value(value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str)
    if callable(getattr(value, "describe", None)):
        return value.describe().replace("\n", "; ")
    return str(value)


@dataclass(frozen=True)
class MemorySummary:
    """Counts of what a ``MemoryManager`` currently holds."""

    insight_count: int
    failure_count: int
    alternatives_count: int


class MemoryManager:
    """Insights, failures and backtracking queue of a single run."""

    def __init__(self) -> None:
        self._insights: dict[str, MemoryInsight] = {}
        self._failures: list[FailedAttempt] = []
        self._failed_signatures: set[str] = set()
        self._alternatives: list[AlternativeAction] = []

    # ------------------------------------------------------------------ #
    #  Insights                                                           #
    # ------------------------------------------------------------------ #

    def store_insight(self, key: str, value: Any, source: str, confidence: float) -> None:
        """Store (or overwrite) the insight *key*."""
        self._insights[key] = MemoryInsight(
            key=key, value=value, source=source, confidence=confidence,
        )

    def get_insight(self, key: str) -> MemoryInsight | None:
        return self._insights.get(key)

    def get_high_confidence_insights(
        self, threshold: float = HIGH_CONFIDENCE_THRESHOLD,
    ) -> list[MemoryInsight]:
        """Insights with confidence >= *threshold*, most confident first."""
        selected = [i for i in self._insights.values() if i.confidence >= threshold]
        return sorted(selected, key=lambda i: i.confidence, reverse=True)

    def format_insights_for_prompt(self, threshold: float = PROMPT_INSIGHT_THRESHOLD) -> str:
        """Render the insights worth showing to the model ('' when none)."""
        insights = self.get_high_confidence_insights(threshold)
        if not insights:
            return ""
        lines = [
            f"- **{i.key}**: {_render_value(i.value)} "
            f"(confidence: {i.confidence:g}%, source: {i.source})"
            for i in insights
        ]
        return "## Key Insights Discovered\n" + "\n".join(lines)

    @property
    def insights(self) -> list[MemoryInsight]:
        return list(self._insights.values())

    # ------------------------------------------------------------------ #
    #  Failures                                                            #
    # ------------------------------------------------------------------ #

    def record_failure(
        self,
        tool_name: str,
        parameters: Mapping[str, Any],
        error: str,
        step_number: int,
    ) -> None:
        self._failures.append(
            FailedAttempt(
                tool_name=tool_name,
                parameters=dict(parameters),
                error=error,
                step_number=step_number,
            )
        )
        self._failed_signatures.add(call_signature(tool_name, parameters))

    def has_already_failed(self, tool_name: str, parameters: Mapping[str, Any]) -> bool:
        """Exact structural match on tool name and parameters."""
        return call_signature(tool_name, parameters) in self._failed_signatures

    @property
    def failed_attempts(self) -> list[FailedAttempt]:
        return list(self._failures)

    def format_failures_for_prompt(self) -> str:
        if not self._failures:
            return ""
        lines = [
            f"- {f.tool_name}({json.dumps(f.parameters, sort_keys=True, default=str)}): {f.error}"
            for f in self._failures
        ]
        return "## Failed Attempts (DO NOT REPEAT)\n" + "\n".join(lines)

    # ------------------------------------------------------------------ #
    #  Alternatives                                                        #
    # ------------------------------------------------------------------ #

    def queue_alternatives(self, alternatives: Iterable[AlternativeAction]) -> None:
        """Add *alternatives*; the queue stays ordered by priority, descending.

        The sort is stable: equal priorities keep their insertion order.
        """
        self._alternatives.extend(alternatives)
        self._alternatives.sort(key=lambda a: a.priority, reverse=True)

    def pop_alternative(self) -> AlternativeAction | None:
        """Remove and return the highest-priority alternative."""
        if not self._alternatives:
            return None
        return self._alternatives.pop(0)

    def has_alternatives(self) -> bool:
        return bool(self._alternatives)

    def discard_alternative(self, tool_name: str, parameters: Mapping[str, Any]) -> bool:
        """Drop the queued alternative matching the call, if any."""
        signature = call_signature(tool_name, parameters)
        for index, alt in enumerate(self._alternatives):
            if call_signature(alt.tool_name, alt.parameters) == signature:
                del self._alternatives[index]
                return True
        return False

    @property
    def pending_alternatives(self) -> list[AlternativeAction]:
        return list(self._alternatives)

    def format_alternatives_for_prompt(self) -> str:
        if not self._alternatives:
            return ""
        lines = [
            f"- {a.tool_name}({json.dumps(a.parameters, sort_keys=True, default=str)})"
            f" [priority {a.priority:g}]: {a.reasoning}"
            for a in self._alternatives
        ]
        return "## Suggested Alternatives\n" + "\n".join(lines)

    # ------------------------------------------------------------------ #
    #  Summary                                                             #
    # ------------------------------------------------------------------ #

    def summary(self) -> MemorySummary:
        return MemorySummary(
            insight_count=len(self._insights),
            failure_count=len(self._failures),
            alternatives_count=len(self._alternatives),
        )
