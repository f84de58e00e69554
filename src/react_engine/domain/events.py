"""Domain events emitted by the ReAct engine.

Every event is a frozen dataclass inheriting from ``DomainEvent``.  The
engine publishes them on an optional ``AsyncEventBus`` so that loggers,
dashboards or audit sinks can follow a run without touching its state.

All events carry a ``timestamp`` and the ``run_id`` (trace id) of the run
that produced them.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from .enums import CritiqueAssessment, EngineState
from .values import Plan, ReasoningStep

# ---------------------------------------------------------------------------
# Base event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Base class for all engine events."""

    timestamp: float = field(default_factory=time.time)
    run_id: str = ""


# ---------------------------------------------------------------------------
# Run lifecycle
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RunStarted(DomainEvent):
    """An engine run began."""

    agent_name: str = ""
    session_id: str = ""


@dataclass(frozen=True)
class PlanCreated(DomainEvent):
    """The planning stage produced the initial plan."""

    plan: Plan | None = None


@dataclass(frozen=True)
class StepRecorded(DomainEvent):
    """A step was appended to the trace."""

    step: ReasoningStep | None = None
    state: EngineState = EngineState.ITERATING


@dataclass(frozen=True)
class ToolFailed(DomainEvent):
    """A tool call failed (or was skipped as a known failure)."""

    tool_name: str = ""
    error: str = ""
    step_number: int = 0
    alternatives_queued: int = 0


@dataclass(frozen=True)
class SynthesisCompleted(DomainEvent):
    """A synthesis call produced a validated result."""

    confidence: float = 0.0
    findings_count: int = 0


@dataclass(frozen=True)
class CritiqueCompleted(DomainEvent):
    """A self-critique pass finished."""

    assessment: CritiqueAssessment = CritiqueAssessment.ACCEPTABLE
    confidence_adjustment: float = 0.0


@dataclass(frozen=True)
class RunFinished(DomainEvent):
    """The run reached DONE or FAILED."""

    success: bool = False
    final_state: EngineState = EngineState.DONE
    confidence: float = 0.0
    cost: float = 0.0
    error: str | None = None
