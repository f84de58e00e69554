"""Pydantic schemas for the JSON the model is asked to produce.

Field names are snake_case; the camelCase spellings models tend to emit
(``thoughtType``, ``readyToSynthesize``, ...) are accepted as aliases.
Confidence values are clamped to [0, 100] rather than rejected.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

from react_engine.domain.enums import (
    CritiqueAssessment,
    CritiqueSeverity,
    GoalStatus,
    ThoughtType,
)

logger = logging.getLogger(__name__)


def _clamp_percent(value: Any) -> float:
    try:
        number = float(value)
    except TypeError as exc:
        raise ValueError(f"expected a number, got {type(value).__name__}") from exc
    return max(0.0, min(100.0, number))


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# -- Planning ----------------------------------------------------------------


class PlanGoalOutput(_Schema):
    """One goal of the model's plan."""

    id: str = Field(default="", description="Goal identifier, e.g. G1")
    description: str = Field(description="What the goal achieves")
    subgoals: list[str] = Field(default_factory=list)
    status: GoalStatus = GoalStatus.PENDING
    required_tools: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_tools", "requiredTools"),
    )


class PlanOutput(_Schema):
    """The planning response."""

    main_goal: str = Field(validation_alias=AliasChoices("main_goal", "mainGoal"))
    goals: list[PlanGoalOutput] = Field(default_factory=list)
    estimated_steps: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("estimated_steps", "estimatedSteps"),
    )
    critical_paths: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("critical_paths", "criticalPaths"),
    )


# -- Step loop ---------------------------------------------------------------


class StepAction(_Schema):
    """A tool call proposed by the model."""

    tool: str = Field(validation_alias=AliasChoices("tool", "tool_name", "toolName"))
    parameters: dict[str, Any] = Field(default_factory=dict)
    reasoning: str = ""


class StepResponse(_Schema):
    """The model's decision for one loop iteration."""

    thought: str
    thought_type: ThoughtType = Field(
        default=ThoughtType.ANALYSIS,
        validation_alias=AliasChoices("thought_type", "thoughtType"),
    )
    action: StepAction | None = None
    confidence: float = 0.0
    ready_to_synthesize: bool = Field(
        default=False,
        validation_alias=AliasChoices("ready_to_synthesize", "readyToSynthesize"),
    )

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        return _clamp_percent(value)

    @classmethod
    def lenient(cls, data: dict[str, Any]) -> StepResponse:
        """Best-effort construction used when strict validation is off."""
        try:
            thought_type = ThoughtType(data.get("thought_type", data.get("thoughtType")))
        except ValueError:
            thought_type = ThoughtType.ANALYSIS
        try:
            confidence = _clamp_percent(data.get("confidence", 0))
        except (TypeError, ValueError):
            confidence = 0.0

        action = None
        raw_action = data.get("action")
        if isinstance(raw_action, dict):
            tool = raw_action.get("tool") or raw_action.get("tool_name") or raw_action.get("toolName")
            if tool:
                params = raw_action.get("parameters")
                action = StepAction(
                    tool=str(tool),
                    parameters=params if isinstance(params, dict) else {},
                    reasoning=str(raw_action.get("reasoning", "")),
                )

        ready = data.get("ready_to_synthesize", data.get("readyToSynthesize", False))
        if isinstance(ready, str):
            ready = ready.strip().lower() in ("true", "yes", "1")
        return cls(
            thought=str(data.get("thought", "")),
            thought_type=thought_type,
            action=action,
            confidence=confidence,
            ready_to_synthesize=bool(ready),
        )


class AlternativeOutput(_Schema):
    """One backtracking suggestion."""

    tool_name: str = Field(validation_alias=AliasChoices("tool_name", "toolName", "tool"))
    parameters: dict[str, Any] = Field(default_factory=dict)
    reasoning: str = ""
    priority: float = 0.0


class AlternativesOutput(_Schema):
    alternatives: list[AlternativeOutput] = Field(default_factory=list)


# -- Synthesis ---------------------------------------------------------------


class FindingOutput(_Schema):
    """A finding as declared by the model."""

    metric: str
    value: Any = None
    unit: str = ""
    assessment: str = ""
    evidence: list[str] = Field(default_factory=list)
    confidence: float = 0.0
    category: str = "general"

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        return _clamp_percent(value)

    @field_validator("evidence", mode="before")
    @classmethod
    def _evidence_as_text(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        texts: list[str] = []
        for item in value:
            if isinstance(item, str):
                texts.append(item)
            elif isinstance(item, dict) and isinstance(item.get("content"), str):
                texts.append(item["content"])
            else:
                texts.append(json.dumps(item, default=str))
        return texts

    @field_validator("unit", "assessment", "category", mode="before")
    @classmethod
    def _none_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return "general" if info.field_name == "category" else ""
        return value if isinstance(value, str) else str(value)


class SynthesisOutput(_Schema):
    """The synthesis response."""

    result: Any = None
    findings: list[FindingOutput] = Field(default_factory=list)
    confidence: float = 0.0
    uncertainties: list[str] = Field(default_factory=list)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        return _clamp_percent(value)


# -- Self-critique -----------------------------------------------------------


class CritiqueItemOutput(_Schema):
    area: str = ""
    issue: str = ""
    severity: CritiqueSeverity = CritiqueSeverity.MINOR
    suggestion: str = ""


class CritiqueOutput(_Schema):
    """The self-critique response."""

    critiques: list[CritiqueItemOutput] = Field(default_factory=list)
    overall_assessment: CritiqueAssessment = Field(
        default=CritiqueAssessment.ACCEPTABLE,
        validation_alias=AliasChoices("overall_assessment", "overallAssessment"),
    )
    suggested_improvements: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("suggested_improvements", "suggestedImprovements"),
    )
    confidence_adjustment: float = Field(
        default=0.0,
        validation_alias=AliasChoices("confidence_adjustment", "confidenceAdjustment"),
    )
