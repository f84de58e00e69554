"""Domain enumerations for the ReAct engine.

These enums capture the fixed vocabularies used across the domain layer:
thought kinds, engine lifecycle states, plan goal statuses, self-critique
verdicts, confidence levels, tool parameter types and tool error codes.
"""

from enum import Enum


class ThoughtType(Enum):
    """Kind of reasoning a thought represents."""

    PLANNING = "planning"
    ANALYSIS = "analysis"
    HYPOTHESIS = "hypothesis"
    EVALUATION = "evaluation"
    SYNTHESIS = "synthesis"
    SELF_CRITIQUE = "self_critique"


class EngineState(Enum):
    """Finite-state-machine states of one engine run."""

    PLANNING = "planning"
    ITERATING = "iterating"
    SYNTHESIZING = "synthesizing"
    CRITIQUING = "critiquing"
    IMPROVING = "improving"
    DONE = "done"
    FAILED = "failed"


class GoalStatus(Enum):
    """Status of a goal in the initial plan."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class CritiqueAssessment(Enum):
    """Overall verdict of a self-critique pass."""

    ACCEPTABLE = "acceptable"
    NEEDS_IMPROVEMENT = "needs_improvement"
    REQUIRES_REVISION = "requires_revision"


class CritiqueSeverity(Enum):
    """Severity of a single critique item."""

    MINOR = "minor"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"


class ConfidenceLevel(Enum):
    """Bucketed confidence level derived from a 0-100 score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INSUFFICIENT = "insufficient"


class ParamType(Enum):
    """Declared type of a tool parameter."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class ToolErrorCode(Enum):
    """Machine-readable reason a tool call did not succeed."""

    UNKNOWN_TOOL = "unknown_tool"
    MISSING_PARAMETER = "missing_parameter"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_ENUM = "invalid_enum"
    TIMEOUT = "timeout"
    EXECUTION_ERROR = "execution_error"
    TOOL_REPORTED = "tool_reported"  # tool returned success=False itself
