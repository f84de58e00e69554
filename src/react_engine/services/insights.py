"""Insight extraction from successful tool results.

After a tool call succeeds, the engine turns its result into memory
insights.  Which fields matter depends on the tool, so extractors are
registered per tool name; tools without an extractor get the generic one,
which keeps every non-null top-level field.

Usage::

    extractors = InsightExtractorRegistry()
    extractors.register("get_deal_info", selected_fields(
        {"arr": "ARR", "growthRate": "growth_rate"}, confidence=90,
    ))
    extractors.register("get_benchmark", prefixed_fields("benchmark", 75))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

GENERIC_CONFIDENCE = 70.0


@dataclass(frozen=True)
class ExtractedInsight:
    """An insight candidate, before it is stamped with its source step."""

    key: str
    value: Any
    confidence: float


InsightExtractor = Callable[[Mapping[str, Any]], list[ExtractedInsight]]


def generic_extractor(tool_name: str, confidence: float = GENERIC_CONFIDENCE) -> InsightExtractor:
    """Store every non-null top-level field as ``<tool>_<field>``."""

    def extract(data: Mapping[str, Any]) -> list[ExtractedInsight]:
        return [
            ExtractedInsight(key=f"{tool_name}_{key}", value=value, confidence=confidence)
            for key, value in data.items()
            if value is not None
        ]

    return extract


def prefixed_fields(prefix: str, confidence: float) -> InsightExtractor:
    """Store every top-level field as ``<prefix>_<field>``."""

    def extract(data: Mapping[str, Any]) -> list[ExtractedInsight]:
        return [
            ExtractedInsight(key=f"{prefix}_{key}", value=value, confidence=confidence)
            for key, value in data.items()
        ]

    return extract


def selected_fields(mapping: Mapping[str, str], confidence: float) -> InsightExtractor:
    """Store only the fields named in *mapping* (field -> insight key).

    Missing or falsy fields are skipped.
    """

    def extract(data: Mapping[str, Any]) -> list[ExtractedInsight]:
        return [
            ExtractedInsight(key=insight_key, value=data[field_name], confidence=confidence)
            for field_name, insight_key in mapping.items()
            if data.get(field_name)
        ]

    return extract


class InsightExtractorRegistry:
    """Tool name -> ``InsightExtractor`` with a generic fallback."""

    def __init__(self) -> None:
        self._extractors: dict[str, InsightExtractor] = {}

    def register(self, tool_name: str, extractor: InsightExtractor) -> None:
        if tool_name in self._extractors:
            logger.warning("Insight extractor for '%s' is being replaced", tool_name)
        self._extractors[tool_name] = extractor

    def has(self, tool_name: str) -> bool:
        return tool_name in self._extractors

    def extract(self, tool_name: str, result: Any) -> list[ExtractedInsight]:
        """Return the insights found in *result* ([] for non-mapping results)."""
        if not isinstance(result, Mapping):
            return []
        extractor = self._extractors.get(tool_name) or generic_extractor(tool_name)
        return extractor(result)
