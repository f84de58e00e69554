"""Builders for scripted model answers.

Each ``*_answer`` helper returns the JSON text a model would send back for
one engine stage.  ``scripted_run_model`` wires a whole run's answers into
a single ``ScriptedChatModel``, routed by the sentence each stage prompt
opens with::

    model = scripted_run_model(
        steps=[
            step_answer("Need revenue", tool="get_revenue", parameters={"year": 2024}),
            step_answer("Enough data", confidence=85, ready=True),
        ],
        synthesis=synthesis_answer({"verdict": "healthy"}, confidence=85),
    )
    llm = ChatModelClient(model)
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from react_engine.testing.mock_llm import ScriptedChatModel

PLAN_MARKER = "create a structured plan"
STEP_MARKER = "You are performing step"
ALTERNATIVES_MARKER = "A tool action failed"
SYNTHESIS_MARKER = "synthesize your findings"
IMPROVEMENT_MARKER = "Based on self-critique feedback"
CRITIQUE_MARKER = "Critically evaluate"


def plan_answer(
    main_goal: str = "Answer the task",
    goals: Sequence[tuple[str, str]] = (("G1", "Collect the data"),),
    estimated_steps: int = 2,
    critical_paths: Sequence[str] = (),
) -> str:
    return json.dumps({
        "main_goal": main_goal,
        "goals": [
            {"id": goal_id, "description": text, "subgoals": [], "status": "pending"}
            for goal_id, text in goals
        ],
        "estimated_steps": estimated_steps,
        "critical_paths": list(critical_paths),
    })


def step_answer(
    thought: str,
    *,
    tool: str | None = None,
    parameters: Mapping[str, Any] | None = None,
    reasoning: str = "",
    confidence: float = 50,
    ready: bool = False,
    thought_type: str = "analysis",
) -> str:
    """Answer to a step or improvement prompt; no ``action`` when *tool* is ``None``."""
    data: dict[str, Any] = {
        "thought": thought,
        "thought_type": thought_type,
        "confidence": confidence,
        "ready_to_synthesize": ready,
    }
    if tool is not None:
        data["action"] = {
            "tool": tool,
            "parameters": dict(parameters or {}),
            "reasoning": reasoning,
        }
    return json.dumps(data)


def alternative(
    tool_name: str,
    parameters: Mapping[str, Any] | None = None,
    priority: float = 5,
    reasoning: str = "",
) -> dict[str, Any]:
    return {
        "tool_name": tool_name,
        "parameters": dict(parameters or {}),
        "reasoning": reasoning,
        "priority": priority,
    }


def alternatives_answer(*alternatives: Mapping[str, Any]) -> str:
    return json.dumps({"alternatives": [dict(a) for a in alternatives]})


def finding(
    metric: str,
    value: Any,
    *,
    evidence: Sequence[str] = (),
    confidence: float = 80,
    unit: str = "",
    assessment: str = "",
) -> dict[str, Any]:
    return {
        "metric": metric,
        "value": value,
        "unit": unit,
        "assessment": assessment,
        "evidence": list(evidence),
        "confidence": confidence,
    }


def synthesis_answer(
    result: Any,
    findings: Sequence[Mapping[str, Any]] = (),
    confidence: float = 85,
    uncertainties: Sequence[str] = (),
) -> str:
    return json.dumps({
        "result": result,
        "findings": [dict(f) for f in findings],
        "confidence": confidence,
        "uncertainties": list(uncertainties),
    })


def critique_answer(
    assessment: str = "acceptable",
    improvements: Sequence[str] = (),
    adjustment: float = 0,
    critiques: Sequence[Mapping[str, Any]] = (),
) -> str:
    return json.dumps({
        "critiques": [dict(c) for c in critiques],
        "overall_assessment": assessment,
        "suggested_improvements": list(improvements),
        "confidence_adjustment": adjustment,
    })


def scripted_run_model(
    *,
    plan: str | None = None,
    steps: Sequence[str] = (),
    alternatives: Sequence[str] = (),
    synthesis: str | Sequence[str] | None = None,
    improvements: Sequence[str] = (),
    critiques: Sequence[str] = (),
    cost_per_call: float | None = None,
    delay_s: float = 0.0,
) -> ScriptedChatModel:
    """Build a ``ScriptedChatModel`` answering every stage of a run.

    Stages left out get no route; their prompts receive an empty answer.
    """
    routes: dict[str, list[Any]] = {
        PLAN_MARKER: [plan if plan is not None else plan_answer()],
    }
    if steps:
        routes[STEP_MARKER] = list(steps)
    if alternatives:
        routes[ALTERNATIVES_MARKER] = list(alternatives)
    if synthesis is not None:
        routes[SYNTHESIS_MARKER] = [synthesis] if isinstance(synthesis, str) else list(synthesis)
    if improvements:
        routes[IMPROVEMENT_MARKER] = list(improvements)
    if critiques:
        routes[CRITIQUE_MARKER] = list(critiques)
    return ScriptedChatModel(routes=routes, cost_per_call=cost_per_call, delay_s=delay_s)
