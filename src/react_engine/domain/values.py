"""Value objects for the ReAct engine.

All types here are frozen dataclasses: immutable and compared by value.
A run builds them one at a time and appends them to the trace; once
appended nothing mutates them, so observers may read a trace while the
run that produces it is still going.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .enums import (
    ConfidenceLevel,
    CritiqueAssessment,
    CritiqueSeverity,
    EngineState,
    GoalStatus,
    ThoughtType,
)

T = TypeVar("T")

SKIPPED_ACTION_ID = "skipped"
SKIPPED_ACTION_ERROR = "Action already failed previously, skipping"


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Thought / Action / Observation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Thought:
    """One piece of model reasoning; exactly one per step."""

    content: str
    type: ThoughtType = ThoughtType.ANALYSIS
    id: str = field(default_factory=_new_id)
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Action:
    """A tool call the model decided to make."""

    tool_name: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    reasoning: str = ""
    id: str = field(default_factory=_new_id)
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Observation:
    """Outcome of executing (or skipping) an ``Action``."""

    action_id: str
    success: bool
    result: Any = None
    error: str | None = None
    execution_time_ms: float = 0.0
    from_cache: bool = False
    id: str = field(default_factory=_new_id)
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def skipped(cls) -> Observation:
        """Synthetic failed observation for an action that already failed."""
        return cls(
            action_id=SKIPPED_ACTION_ID,
            success=False,
            result=None,
            error=SKIPPED_ACTION_ERROR,
        )

    @property
    def is_skipped(self) -> bool:
        return self.action_id == SKIPPED_ACTION_ID


# ---------------------------------------------------------------------------
# Trace
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReasoningStep:
    """Atomic unit of the trace.  Step 0 is reserved for the plan."""

    step_number: int
    thought: Thought
    action: Action | None = None
    observation: Observation | None = None
    confidence_after_step: float = 0.0


@dataclass(frozen=True)
class ReasoningTrace:
    """Ordered, immutable record of one engine run."""

    agent_name: str
    task_description: str
    steps: tuple[ReasoningStep, ...] = ()
    total_iterations: int = 0
    final_confidence: float = 0.0
    execution_time_ms: float = 0.0
    final_state: EngineState = EngineState.DONE
    id: str = field(default_factory=_new_id)
    timestamp: float = field(default_factory=time.time)

    @property
    def actions_taken(self) -> int:
        return sum(1 for s in self.steps if s.action is not None)

    @property
    def successful_actions(self) -> int:
        return sum(
            1 for s in self.steps
            if s.observation is not None and s.observation.success
        )


# ---------------------------------------------------------------------------
# Memory records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MemoryInsight:
    """A confidence-weighted fact learned during the run."""

    key: str
    value: Any
    source: str
    confidence: float
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class FailedAttempt:
    """A tool call that failed and must not be repeated verbatim."""

    tool_name: str
    parameters: Mapping[str, Any]
    error: str
    step_number: int


@dataclass(frozen=True)
class AlternativeAction:
    """A backtracking suggestion produced after a tool failure."""

    tool_name: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    reasoning: str = ""
    priority: float = 0.0


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PlanGoal:
    """One goal of the initial plan."""

    id: str
    description: str
    subgoals: tuple[str, ...] = ()
    status: GoalStatus = GoalStatus.PENDING
    required_tools: tuple[str, ...] = ()


@dataclass(frozen=True)
class Plan:
    """Goal decomposition produced once, before any action is taken.

    ``fallback`` is ``True`` when the model's plan could not be parsed and a
    minimal plan was substituted.
    """

    main_goal: str
    goals: tuple[PlanGoal, ...] = ()
    estimated_steps: int = 0
    critical_paths: tuple[str, ...] = ()
    fallback: bool = False

    def describe(self) -> str:
        """Return the text used for the planning thought of step 0."""
        subgoals = ", ".join(g.description for g in self.goals) or "none"
        return (
            f"Plan: {self.main_goal}\n"
            f"Subgoals: {subgoals}\n"
            f"Estimated steps: {self.estimated_steps}"
        )


# ---------------------------------------------------------------------------
# Confidence
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConfidenceFactor:
    """One weighted input to a confidence score."""

    name: str
    weight: float
    score: float
    reason: str = ""


@dataclass(frozen=True)
class ConfidenceScore:
    """Aggregate confidence: a 0-100 score, its level, and its factors."""

    level: ConfidenceLevel
    score: float
    factors: tuple[ConfidenceFactor, ...] = ()

    @classmethod
    def insufficient(cls) -> ConfidenceScore:
        return cls(level=ConfidenceLevel.INSUFFICIENT, score=0.0)


# ---------------------------------------------------------------------------
# Findings and synthesis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Evidence:
    """A normalized piece of evidence attached to a finding."""

    content: str
    type: str = "quote"
    source: str = "analysis"
    confidence: float = 0.0  # [0, 1]


@dataclass(frozen=True)
class ScoredFinding:
    """A normalized, evidence-backed claim extracted during synthesis."""

    agent_name: str
    metric: str
    confidence: ConfidenceScore
    category: str = "general"
    value: Any = None
    unit: str = ""
    assessment: str = ""
    evidence: tuple[Evidence, ...] = ()
    reasoning_trace_id: str | None = None
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class SynthesisResult(Generic[T]):
    """Output of one synthesis call.

    Superseded (not mutated) when an improvement cycle re-synthesizes or a
    critique adjusts the confidence.
    """

    data: T
    findings: tuple[ScoredFinding, ...] = ()
    confidence: float = 0.0
    supporting_evidence: tuple[str, ...] = ()
    uncertainties: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Self-critique
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Critique:
    """A single issue raised by the self-critique reviewer."""

    area: str
    issue: str
    severity: CritiqueSeverity = CritiqueSeverity.MINOR
    suggestion: str = ""


@dataclass(frozen=True)
class SelfCritiqueResult:
    """Result of a self-critique pass."""

    overall_assessment: CritiqueAssessment = CritiqueAssessment.ACCEPTABLE
    critiques: tuple[Critique, ...] = ()
    suggested_improvements: tuple[str, ...] = ()
    confidence_adjustment: float = 0.0

    @property
    def requires_revision(self) -> bool:
        return self.overall_assessment is CritiqueAssessment.REQUIRES_REVISION


# ---------------------------------------------------------------------------
# Result envelope
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReActOutput(Generic[T]):
    """The envelope returned by every engine run.

    ``result`` is ``None`` when ``success`` is ``False``.  The trace is
    always present, even for a run that failed during planning.
    """

    success: bool
    result: T | None
    confidence: ConfidenceScore
    reasoning_trace: ReasoningTrace
    findings: tuple[ScoredFinding, ...] = ()
    execution_time_ms: float = 0.0
    cost: float = 0.0
    error: str | None = None
