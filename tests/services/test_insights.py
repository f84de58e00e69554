"""Tests for per-tool insight extraction."""

from __future__ import annotations

from react_engine.services.insights import (
    ExtractedInsight,
    InsightExtractorRegistry,
    generic_extractor,
    prefixed_fields,
    selected_fields,
)


class TestExtractors:
    def test_generic_skips_none_fields(self) -> None:
        extract = generic_extractor("get_deal")
        insights = extract({"arr": 100, "churn": None})
        assert insights == [ExtractedInsight("get_deal_arr", 100, 70.0)]

    def test_prefixed_keeps_every_field(self) -> None:
        extract = prefixed_fields("benchmark", 75)
        keys = [i.key for i in extract({"median": 0.3, "p90": None})]
        assert keys == ["benchmark_median", "benchmark_p90"]

    def test_selected_fields_renames_and_skips_falsy(self) -> None:
        extract = selected_fields({"growthRate": "growth_rate", "arr": "ARR", "nrr": "NRR"}, 90)
        insights = extract({"growthRate": 0.4, "arr": 0, "other": 1})
        assert insights == [ExtractedInsight("growth_rate", 0.4, 90)]


class TestInsightExtractorRegistry:
    def test_falls_back_to_generic(self) -> None:
        registry = InsightExtractorRegistry()
        insights = registry.extract("search", {"hits": 3})
        assert [i.key for i in insights] == ["search_hits"]

    def test_registered_extractor_wins(self) -> None:
        registry = InsightExtractorRegistry()
        registry.register("get_deal", selected_fields({"arr": "ARR"}, 95))
        assert registry.has("get_deal")
        insights = registry.extract("get_deal", {"arr": 5, "name": "Acme"})
        assert insights == [ExtractedInsight("ARR", 5, 95)]

    def test_non_mapping_result_yields_nothing(self) -> None:
        registry = InsightExtractorRegistry()
        assert registry.extract("search", ["a", "b"]) == []
        assert registry.extract("search", None) == []
