"""Domain layer for the ReAct engine.

Re-exports all public domain types so that consumers can write::

    from react_engine.domain import ReasoningStep, ReActOutput, EngineState
"""

# -- Enumerations -------------------------------------------------------------
from .enums import (
    ConfidenceLevel,
    CritiqueAssessment,
    CritiqueSeverity,
    EngineState,
    GoalStatus,
    ParamType,
    ThoughtType,
    ToolErrorCode,
)

# -- Events -------------------------------------------------------------------
from .events import (
    CritiqueCompleted,
    DomainEvent,
    PlanCreated,
    RunFinished,
    RunStarted,
    StepRecorded,
    SynthesisCompleted,
    ToolFailed,
)

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    OutputValidationError,
    ParseError,
    ReActError,
    ReActTimeoutError,
    ToolDefinitionError,
)

# -- Value Objects ------------------------------------------------------------
from .values import (
    Action,
    AlternativeAction,
    ConfidenceFactor,
    ConfidenceScore,
    Critique,
    Evidence,
    FailedAttempt,
    MemoryInsight,
    Observation,
    Plan,
    PlanGoal,
    ReActOutput,
    ReasoningStep,
    ReasoningTrace,
    ScoredFinding,
    SelfCritiqueResult,
    SynthesisResult,
    Thought,
)

__all__ = [
    # Enums
    "ConfidenceLevel",
    "CritiqueAssessment",
    "CritiqueSeverity",
    "EngineState",
    "GoalStatus",
    "ParamType",
    "ThoughtType",
    "ToolErrorCode",
    # Events
    "DomainEvent",
    "RunStarted",
    "PlanCreated",
    "StepRecorded",
    "ToolFailed",
    "SynthesisCompleted",
    "CritiqueCompleted",
    "RunFinished",
    # Exceptions
    "ReActError",
    "ParseError",
    "ToolDefinitionError",
    "OutputValidationError",
    "ReActTimeoutError",
    # Values
    "Thought",
    "Action",
    "Observation",
    "ReasoningStep",
    "ReasoningTrace",
    "MemoryInsight",
    "FailedAttempt",
    "AlternativeAction",
    "PlanGoal",
    "Plan",
    "ConfidenceFactor",
    "ConfidenceScore",
    "Evidence",
    "ScoredFinding",
    "SynthesisResult",
    "Critique",
    "SelfCritiqueResult",
    "ReActOutput",
]
