"""Confidence scoring for findings and whole runs.

``ConfidenceCalculator`` blends up to five 0-100 factors with fixed weights
into a ``ConfidenceScore``.  The heuristics that turn a run's statistics
into those factors live behind ``ConfidencePolicy`` so callers can swap
them; ``DefaultConfidencePolicy`` is the stock one.

Every function here is pure.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from react_engine.domain.enums import ConfidenceLevel
from react_engine.domain.values import ConfidenceFactor, ConfidenceScore, ReasoningStep

logger = logging.getLogger(__name__)

HIGH_THRESHOLD = 75.0
MEDIUM_THRESHOLD = 50.0
LOW_THRESHOLD = 25.0

NO_ACTION_SUCCESS_RATE = 50.0
BENCHMARK_MATCH = 70.0
RELIABILITY_WITH_ACTIONS = 80.0
RELIABILITY_WITHOUT_ACTIONS = 50.0
TEMPORAL_RELEVANCE = 90.0
EVIDENCE_POINTS_PER_ITEM = 30.0


# ===================================================================== #
#  Calculator                                                            #
# ===================================================================== #

@dataclass(frozen=True)
class FactorWeights:
    """Relative weight of each confidence factor."""

    data_availability: float = 0.30
    evidence_quality: float = 0.25
    benchmark_match: float = 0.20
    source_reliability: float = 0.15
    temporal_relevance: float = 0.10


# (field, display name, reason bands high-to-low)
_FACTORS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("data_availability", "Data Availability", (
        "All required data points available",
        "Most data points available, some gaps",
        "Partial data available",
        "Limited data available",
        "Insufficient data",
    )),
    ("evidence_quality", "Evidence Quality", (
        "Strong, verified evidence from multiple sources",
        "Good evidence with some verification",
        "Moderate evidence quality",
        "Weak or unverified evidence",
        "No reliable evidence",
    )),
    ("benchmark_match", "Benchmark Match", (
        "Exact benchmark match",
        "Close benchmark match with minor extrapolation",
        "Approximate benchmark from a related domain",
        "Generic benchmark used",
        "No applicable benchmark",
    )),
    ("source_reliability", "Source Reliability", (
        "Multiple independent, reliable sources",
        "Two reliable sources",
        "Single verified source",
        "Unverified source",
        "No credible source",
    )),
    ("temporal_relevance", "Temporal Relevance", (
        "Data is current",
        "Data is recent",
        "Data is somewhat dated",
        "Data is old",
        "Data age unknown or stale",
    )),
)


def clamp_score(value: float) -> float:
    """Clamp *value* to [0, 100]."""
    return float(np.clip(value, 0.0, 100.0))


def round_score(value: float) -> float:
    """Round half up to an integral score."""
    return float(np.floor(value + 0.5))


def score_to_level(score: float) -> ConfidenceLevel:
    if score >= HIGH_THRESHOLD:
        return ConfidenceLevel.HIGH
    if score >= MEDIUM_THRESHOLD:
        return ConfidenceLevel.MEDIUM
    if score >= LOW_THRESHOLD:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.INSUFFICIENT


def _reason(score: float, bands: tuple[str, ...]) -> str:
    for threshold, text in zip((80, 60, 40, 20), bands):
        if score >= threshold:
            return text
    return bands[-1]


class ConfidenceCalculator:
    """Weighted multi-factor confidence scoring.

    Only the factors passed to ``calculate`` take part; the weights of the
    present factors are renormalized.
    """

    def __init__(self, weights: FactorWeights | None = None) -> None:
        self._weights = weights or FactorWeights()

    @property
    def weights(self) -> FactorWeights:
        return self._weights

    def calculate(
        self,
        data_availability: float | None = None,
        evidence_quality: float | None = None,
        benchmark_match: float | None = None,
        source_reliability: float | None = None,
        temporal_relevance: float | None = None,
    ) -> ConfidenceScore:
        given = {
            "data_availability": data_availability,
            "evidence_quality": evidence_quality,
            "benchmark_match": benchmark_match,
            "source_reliability": source_reliability,
            "temporal_relevance": temporal_relevance,
        }
        factors: list[ConfidenceFactor] = []
        for field_name, display, bands in _FACTORS:
            raw = given[field_name]
            if raw is None:
                continue
            score = clamp_score(raw)
            factors.append(
                ConfidenceFactor(
                    name=display,
                    weight=getattr(self._weights, field_name),
                    score=score,
                    reason=_reason(score, bands),
                )
            )

        if not factors:
            return ConfidenceScore.insufficient()

        weights = np.array([f.weight for f in factors], dtype=float)
        scores = np.array([f.score for f in factors], dtype=float)
        blended = float(np.average(scores, weights=weights)) if weights.sum() > 0 else 0.0
        final = round_score(blended)
        return ConfidenceScore(level=score_to_level(final), score=final, factors=tuple(factors))

    def combine(self, scores: Sequence[ConfidenceScore]) -> ConfidenceScore:
        """Aggregate several scores, weighting each by its own score."""
        if not scores:
            return ConfidenceScore.insufficient()
        if len(scores) == 1:
            return scores[0]

        values = np.array([s.score for s in scores], dtype=float)
        weights = values / 100.0
        combined = float(np.average(values, weights=weights)) if weights.sum() > 0 else 0.0
        final = round_score(combined)

        grouped: dict[str, list[ConfidenceFactor]] = {}
        for score in scores:
            for factor in score.factors:
                grouped.setdefault(factor.name, []).append(factor)
        factors = tuple(
            ConfidenceFactor(
                name=name,
                weight=float(np.mean([f.weight for f in group])),
                score=round_score(float(np.mean([f.score for f in group]))),
                reason=f"Aggregated from {len(group)} sources",
            )
            for name, group in grouped.items()
        )
        return ConfidenceScore(level=score_to_level(final), score=final, factors=factors)


# ===================================================================== #
#  Run heuristics                                                        #
# ===================================================================== #

@dataclass(frozen=True)
class RunStats:
    """What a run produced, as seen by the confidence policy."""

    steps: int
    actions: int
    successful_actions: int
    insights: int

    @classmethod
    def from_steps(cls, steps: Sequence[ReasoningStep], insights: int) -> RunStats:
        return cls(
            steps=len(steps),
            actions=sum(1 for s in steps if s.action is not None),
            successful_actions=sum(
                1 for s in steps if s.observation is not None and s.observation.success
            ),
            insights=insights,
        )


def action_success_rate(actions: int, successful: int) -> float:
    """Percentage of successful actions; 50 when no action ran."""
    if actions <= 0:
        return NO_ACTION_SUCCESS_RATE
    return successful / actions * 100.0


def data_availability_score(steps: int, success_rate: float, insights: int) -> float:
    return min(100.0, steps * 20.0 + success_rate * 0.5 + insights * 5.0)


def evidence_quality_from_count(evidence_count: int) -> float:
    return min(100.0, EVIDENCE_POINTS_PER_ITEM * evidence_count)


def source_reliability_score(actions: int) -> float:
    return RELIABILITY_WITH_ACTIONS if actions > 0 else RELIABILITY_WITHOUT_ACTIONS


class ConfidencePolicy(ABC):
    """Turns finding declarations and run statistics into confidence scores."""

    @abstractmethod
    def finding_confidence(self, declared: float, evidence_count: int) -> ConfidenceScore:
        """Confidence of one synthesized finding."""

    @abstractmethod
    def run_confidence(self, stats: RunStats, critique_adjustment: float = 0.0) -> ConfidenceScore:
        """Overall confidence of a finished run."""


class DefaultConfidencePolicy(ConfidencePolicy):
    """Stock heuristics over ``ConfidenceCalculator``."""

    def __init__(self, calculator: ConfidenceCalculator | None = None) -> None:
        self._calculator = calculator or ConfidenceCalculator()

    def finding_confidence(self, declared: float, evidence_count: int) -> ConfidenceScore:
        return self._calculator.calculate(
            data_availability=declared,
            evidence_quality=evidence_quality_from_count(evidence_count),
        )

    def run_confidence(self, stats: RunStats, critique_adjustment: float = 0.0) -> ConfidenceScore:
        rate = action_success_rate(stats.actions, stats.successful_actions)
        base = self._calculator.calculate(
            data_availability=data_availability_score(stats.steps, rate, stats.insights),
            evidence_quality=rate,
            benchmark_match=BENCHMARK_MATCH,
            source_reliability=source_reliability_score(stats.actions),
            temporal_relevance=TEMPORAL_RELEVANCE,
        )
        if not critique_adjustment:
            return base
        adjusted = round_score(clamp_score(base.score + critique_adjustment))
        logger.debug(
            "Run confidence %.0f adjusted by %+.1f to %.0f",
            base.score, critique_adjustment, adjusted,
        )
        return ConfidenceScore(level=score_to_level(adjusted), score=adjusted, factors=base.factors)
