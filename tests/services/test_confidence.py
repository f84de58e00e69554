"""Tests for confidence scoring of findings and runs."""

from __future__ import annotations

import pytest

from react_engine.domain.enums import ConfidenceLevel
from react_engine.domain.values import (
    Action,
    ConfidenceScore,
    Observation,
    ReasoningStep,
    Thought,
)
from react_engine.services.confidence import (
    ConfidenceCalculator,
    DefaultConfidencePolicy,
    RunStats,
    action_success_rate,
    data_availability_score,
    evidence_quality_from_count,
    round_score,
    score_to_level,
)


class TestConfidenceCalculator:
    """Weighted blending of the five factors."""

    def test_no_factors_is_insufficient(self) -> None:
        score = ConfidenceCalculator().calculate()
        assert score.score == 0
        assert score.level is ConfidenceLevel.INSUFFICIENT
        assert score.factors == ()

    def test_weights_renormalized_over_present_factors(self) -> None:
        # (80 * 0.30 + 60 * 0.25) / 0.55 = 70.9
        score = ConfidenceCalculator().calculate(data_availability=80, evidence_quality=60)
        assert score.score == 71
        assert score.level is ConfidenceLevel.MEDIUM
        assert [f.name for f in score.factors] == ["Data Availability", "Evidence Quality"]

    def test_all_factors_maxed(self) -> None:
        score = ConfidenceCalculator().calculate(
            data_availability=100,
            evidence_quality=100,
            benchmark_match=100,
            source_reliability=100,
            temporal_relevance=100,
        )
        assert score.score == 100
        assert score.level is ConfidenceLevel.HIGH

    def test_factor_scores_are_clamped(self) -> None:
        score = ConfidenceCalculator().calculate(data_availability=140, evidence_quality=-20)
        assert [f.score for f in score.factors] == [100.0, 0.0]

    def test_factor_reasons_follow_bands(self) -> None:
        score = ConfidenceCalculator().calculate(
            data_availability=85, temporal_relevance=10,
        )
        reasons = {f.name: f.reason for f in score.factors}
        assert reasons["Data Availability"] == "All required data points available"
        assert reasons["Temporal Relevance"] == "Data age unknown or stale"

    def test_combine_weights_by_score(self) -> None:
        calc = ConfidenceCalculator()
        high = calc.calculate(data_availability=90)
        low = calc.calculate(data_availability=30)
        combined = calc.combine([high, low])
        # (90 * 0.9 + 30 * 0.3) / 1.2 = 75
        assert combined.score == 75
        assert combined.factors[0].reason == "Aggregated from 2 sources"

    def test_combine_edge_cases(self) -> None:
        calc = ConfidenceCalculator()
        assert calc.combine([]).level is ConfidenceLevel.INSUFFICIENT
        only = calc.calculate(evidence_quality=40)
        assert calc.combine([only]) is only


class TestLevels:
    @pytest.mark.parametrize(
        ("score", "level"),
        [
            (100, ConfidenceLevel.HIGH),
            (75, ConfidenceLevel.HIGH),
            (74, ConfidenceLevel.MEDIUM),
            (50, ConfidenceLevel.MEDIUM),
            (49, ConfidenceLevel.LOW),
            (25, ConfidenceLevel.LOW),
            (24, ConfidenceLevel.INSUFFICIENT),
            (0, ConfidenceLevel.INSUFFICIENT),
        ],
    )
    def test_score_to_level(self, score: float, level: ConfidenceLevel) -> None:
        assert score_to_level(score) is level

    def test_round_half_up(self) -> None:
        assert round_score(70.5) == 71
        assert round_score(70.4) == 70


class TestHeuristics:
    def test_success_rate_without_actions_is_neutral(self) -> None:
        assert action_success_rate(0, 0) == 50.0
        assert action_success_rate(4, 3) == 75.0

    def test_data_availability_capped(self) -> None:
        assert data_availability_score(2, 50.0, 1) == 70.0
        assert data_availability_score(10, 100.0, 10) == 100.0

    def test_evidence_quality_from_count(self) -> None:
        assert evidence_quality_from_count(0) == 0.0
        assert evidence_quality_from_count(2) == 60.0
        assert evidence_quality_from_count(5) == 100.0


class TestDefaultConfidencePolicy:
    """Run and finding confidence."""

    def test_finding_confidence_uses_declared_and_evidence(self) -> None:
        score = DefaultConfidencePolicy().finding_confidence(80, 2)
        # (80 * 0.30 + 60 * 0.25) / 0.55 = 70.9
        assert score.score == 71

    def test_run_confidence_monotonic_in_success_rate(self) -> None:
        policy = DefaultConfidencePolicy()
        scores = [
            policy.run_confidence(RunStats(steps=3, actions=4, successful_actions=k, insights=1)).score
            for k in range(5)
        ]
        assert scores == sorted(scores)
        assert scores[-1] > scores[0]

    def test_run_confidence_all_successful(self) -> None:
        stats = RunStats(steps=3, actions=1, successful_actions=1, insights=1)
        score = DefaultConfidencePolicy().run_confidence(stats)
        assert score.score == 90
        assert score.level is ConfidenceLevel.HIGH
        assert len(score.factors) == 5

    def test_critique_adjustment_applied_and_clamped(self) -> None:
        policy = DefaultConfidencePolicy()
        stats = RunStats(steps=3, actions=1, successful_actions=1, insights=1)
        assert policy.run_confidence(stats, critique_adjustment=-20).score == 70
        assert policy.run_confidence(stats, critique_adjustment=-20).level is ConfidenceLevel.MEDIUM
        assert policy.run_confidence(stats, critique_adjustment=15).score == 100

    def test_run_stats_from_steps_counts_actions(self) -> None:
        ok = Action("search")
        bad = Action("lookup")
        steps = [
            ReasoningStep(0, Thought("plan")),
            ReasoningStep(1, Thought("a"), ok, Observation(ok.id, True, result=1)),
            ReasoningStep(2, Thought("b"), bad, Observation(bad.id, False, error="x")),
            ReasoningStep(3, Thought("c"), None, Observation.skipped()),
        ]
        stats = RunStats.from_steps(steps, insights=2)
        assert stats == RunStats(steps=4, actions=2, successful_actions=1, insights=2)

    def test_insufficient_score(self) -> None:
        assert ConfidenceScore.insufficient().score == 0.0
