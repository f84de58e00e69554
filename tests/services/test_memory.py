"""Tests for MemoryManager: insights, failures and the alternatives queue."""

from __future__ import annotations

from react_engine.domain.values import AlternativeAction, Plan
from react_engine.services.memory import MemoryManager, call_signature


class TestInsights:
    """Confidence-weighted facts."""

    def test_last_write_wins(self) -> None:
        memory = MemoryManager()
        memory.store_insight("arr", 1_000_000, "step-1", 80)
        memory.store_insight("arr", 1_200_000, "step-2", 90)
        insight = memory.get_insight("arr")
        assert insight is not None
        assert insight.value == 1_200_000
        assert insight.source == "step-2"
        assert len(memory.insights) == 1

    def test_high_confidence_sorted_descending(self) -> None:
        memory = MemoryManager()
        memory.store_insight("a", 1, "s", 71)
        memory.store_insight("b", 2, "s", 95)
        memory.store_insight("c", 3, "s", 40)
        keys = [i.key for i in memory.get_high_confidence_insights()]
        assert keys == ["b", "a"]

    def test_format_insights_respects_threshold(self) -> None:
        memory = MemoryManager()
        memory.store_insight("growth", 0.4, "step-1", 65)
        memory.store_insight("noise", "x", "step-1", 30)
        text = memory.format_insights_for_prompt()
        assert text.startswith("## Key Insights Discovered")
        assert "**growth**: 0.4 (confidence: 65%, source: step-1)" in text
        assert "noise" not in text

    def test_format_insights_empty(self) -> None:
        assert MemoryManager().format_insights_for_prompt() == ""

    def test_plan_insight_rendered_on_one_line(self) -> None:
        memory = MemoryManager()
        memory.store_insight("initial_plan", Plan(main_goal="Find ARR"), "planning", 100)
        text = memory.format_insights_for_prompt()
        assert "Plan: Find ARR; Subgoals: none" in text


class TestFailures:
    """Failed attempts are matched structurally."""

    def test_has_already_failed_ignores_key_order(self) -> None:
        memory = MemoryManager()
        memory.record_failure("search", {"q": "acme", "limit": 5}, "boom", 1)
        assert memory.has_already_failed("search", {"limit": 5, "q": "acme"})

    def test_different_parameters_not_failed(self) -> None:
        memory = MemoryManager()
        memory.record_failure("search", {"q": "acme"}, "boom", 1)
        assert not memory.has_already_failed("search", {"q": "acme inc"})
        assert not memory.has_already_failed("lookup", {"q": "acme"})

    def test_format_failures(self) -> None:
        memory = MemoryManager()
        memory.record_failure("search", {"q": "acme"}, "rate limited", 2)
        text = memory.format_failures_for_prompt()
        assert text.startswith("## Failed Attempts (DO NOT REPEAT)")
        assert '- search({"q": "acme"}): rate limited' in text
        assert memory.failed_attempts[0].step_number == 2

    def test_call_signature_is_sorted_json(self) -> None:
        assert call_signature("t", {"b": 1, "a": 2}) == 't:{"a": 2, "b": 1}'


class TestAlternatives:
    """Priority queue used for backtracking."""

    def test_pop_returns_highest_priority_first(self) -> None:
        memory = MemoryManager()
        memory.queue_alternatives([
            AlternativeAction("low", priority=2),
            AlternativeAction("high", priority=9),
            AlternativeAction("mid", priority=5),
        ])
        popped = [memory.pop_alternative().tool_name for _ in range(3)]
        assert popped == ["high", "mid", "low"]
        assert memory.pop_alternative() is None

    def test_equal_priorities_keep_insertion_order(self) -> None:
        memory = MemoryManager()
        memory.queue_alternatives([AlternativeAction("first", priority=5)])
        memory.queue_alternatives([AlternativeAction("second", priority=5)])
        assert [a.tool_name for a in memory.pending_alternatives] == ["first", "second"]

    def test_discard_alternative(self) -> None:
        memory = MemoryManager()
        memory.queue_alternatives([AlternativeAction("search", {"q": "x"}, priority=3)])
        assert memory.discard_alternative("search", {"q": "x"})
        assert not memory.has_alternatives()
        assert not memory.discard_alternative("search", {"q": "x"})

    def test_format_alternatives(self) -> None:
        memory = MemoryManager()
        memory.queue_alternatives([
            AlternativeAction("search", {"q": "acme"}, "broader query", priority=7),
        ])
        text = memory.format_alternatives_for_prompt()
        assert text.startswith("## Suggested Alternatives")
        assert '- search({"q": "acme"}) [priority 7]: broader query' in text

    def test_summary_counts(self) -> None:
        memory = MemoryManager()
        memory.store_insight("a", 1, "s", 50)
        memory.record_failure("t", {}, "e", 1)
        memory.queue_alternatives([AlternativeAction("u"), AlternativeAction("v")])
        summary = memory.summary()
        assert (summary.insight_count, summary.failure_count, summary.alternatives_count) == (1, 1, 2)
