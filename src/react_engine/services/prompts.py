"""Prompt inputs and prompt builders for every engine stage.

``ReActPrompts`` is the per-agent text the caller supplies (system prompt,
task, output schema, constraints).  The builders below combine it with
the run's state into the prompt of each model call.  Each prompt opens
with a fixed sentence naming its stage; the structure of the JSON the
model must answer with is spelled out at the end.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from langchain_core.prompts import PromptTemplate
from pydantic import BaseModel

from react_engine.domain.values import Action, Plan, ReasoningStep, SynthesisResult
from react_engine.services.memory import MemoryManager

OBSERVATION_PREVIEW_CHARS = 500

ALTERNATIVES_SYSTEM_PROMPT = (
    "You are a problem-solver. When one approach fails, suggest creative alternatives."
)
CRITIC_SYSTEM_PROMPT = (
    "You are a critical reviewer. Be thorough but fair. "
    "Identify real issues, not hypothetical ones."
)


@dataclass(frozen=True)
class ReActPrompts:
    """Agent-specific prompt material.

    Attributes
    ----------
    system:
        System prompt of the agent (persona, domain rules).
    task_description:
        What the agent must find out.
    available_tools_text:
        Optional guidance on when to use which tool, shown next to the
        registry's own catalog.
    output_schema_text:
        Description of the structure the final ``result`` must have.
    constraints:
        Rules the agent must respect at every step.
    """

    system: str
    task_description: str
    available_tools_text: str = ""
    output_schema_text: str = ""
    constraints: tuple[str, ...] = ()


@dataclass(frozen=True)
class AgentContext:
    """Caller data for one run.  ``data`` is passed through to tools."""

    session_id: str
    data: Mapping[str, Any] = field(default_factory=dict)


# ===================================================================== #
#  Templates                                                             #
# ===================================================================== #

_PLANNING_TEMPLATE = PromptTemplate.from_template(
    "You are starting a ReAct analysis. Before taking any actions, create a structured plan.\n\n"
    "## Task\n{task}\n\n"
    "## Available Tools\n{tools}\n\n"
    "## Instructions\n"
    "Decompose the main task into concrete goals and subgoals. "
    "For each goal, identify which tools might be needed.\n\n"
    "Respond with JSON:\n"
    "{{\n"
    '  "main_goal": "the overarching objective",\n'
    '  "goals": [\n'
    "    {{\n"
    '      "id": "G1",\n'
    '      "description": "specific goal",\n'
    '      "subgoals": ["subgoal 1", "subgoal 2"],\n'
    '      "status": "pending",\n'
    '      "required_tools": ["tool1", "tool2"]\n'
    "    }}\n"
    "  ],\n"
    '  "estimated_steps": 3,\n'
    '  "critical_paths": ["what must be done first", "dependencies"]\n'
    "}}"
)

_STEP_TEMPLATE = PromptTemplate.from_template(
    "You are performing step {iteration} of a ReAct (Reasoning-Action) analysis.\n\n"
    "## Task\n{task}\n\n"
    "## Initial Plan\n{plan}\n\n"
    "## Available Tools\n{tools}\n\n"
    "## Previous Steps\n{steps}\n\n"
    "{memory}"
    "## Constraints\n{constraints}\n\n"
    "## Instructions\n"
    "1. Review the plan and what you have learned so far\n"
    "2. Think about what you still need to know\n"
    "3. Decide whether to take an action with one of the available tools, "
    "or to synthesize (only once you have sufficient information)\n"
    "4. DO NOT repeat failed actions with the same parameters\n"
    "5. Aim for a confidence of at least {target} before synthesizing\n\n"
    "Respond with JSON in this exact format:\n"
    "{{\n"
    '  "thought": "your reasoning about the current state and next steps",\n'
    '  "thought_type": "planning|analysis|hypothesis|evaluation|synthesis",\n'
    '  "action": {{\n'
    '    "tool": "tool_name",\n'
    '    "parameters": {{}},\n'
    '    "reasoning": "why this action will help"\n'
    "  }},\n"
    '  "confidence": 0,\n'
    '  "ready_to_synthesize": false\n'
    "}}\n\n"
    "confidence is a number from 0 to 100. "
    "If ready_to_synthesize is true, omit the action field."
)

_ALTERNATIVES_TEMPLATE = PromptTemplate.from_template(
    "A tool action failed. Suggest alternative approaches.\n\n"
    "## Failed Action\n"
    "- Tool: {tool}\n"
    "- Parameters: {parameters}\n"
    "- Error: {error}\n"
    "- Reasoning: {reasoning}\n\n"
    "## Previous Failed Attempts\n{failures}\n\n"
    "## Available Tools\n{tools}\n\n"
    "## Instructions\n"
    "Suggest 2-3 alternative actions that could achieve the same goal differently.\n"
    "Each alternative should have different parameters or use a different tool.\n\n"
    "Respond with JSON:\n"
    "{{\n"
    '  "alternatives": [\n'
    "    {{\n"
    '      "tool_name": "alternative_tool",\n'
    '      "parameters": {{}},\n'
    '      "reasoning": "why this alternative might work",\n'
    '      "priority": 5\n'
    "    }}\n"
    "  ]\n"
    "}}\n\n"
    "priority is a number from 1 (low) to 10 (high)."
)

_SYNTHESIS_TEMPLATE = PromptTemplate.from_template(
    "Based on your ReAct analysis, synthesize your findings into a final output.\n\n"
    "## Task\n{task}\n\n"
    "## Analysis Steps\n{steps}\n\n"
    "{memory}"
    "## Required Output Schema\n{schema}\n\n"
    "## Instructions\n"
    "Synthesize all your findings into the required output format.\n"
    "USE THE KEY INSIGHTS to ensure your synthesis is grounded in discovered data.\n\n"
    "For each finding, provide the metric name, the extracted or calculated value, "
    "an assessment of the value, the evidence supporting it, and your confidence "
    "in this specific finding (0-100).\n\n"
    "Respond with JSON:\n"
    "{{\n"
    '  "result": {{}},\n'
    '  "findings": [\n'
    "    {{\n"
    '      "metric": "metric_name",\n'
    '      "value": "value",\n'
    '      "unit": "unit",\n'
    '      "assessment": "assessment text",\n'
    '      "evidence": ["evidence 1", "evidence 2"],\n'
    '      "confidence": 80\n'
    "    }}\n"
    "  ],\n"
    '  "confidence": 0,\n'
    '  "uncertainties": ["things you are not sure about"]\n'
    "}}\n\n"
    '"result" must match the required output schema.'
)

_IMPROVEMENT_TEMPLATE = PromptTemplate.from_template(
    "Based on self-critique feedback, you need to improve your analysis.\n\n"
    "## Task\n{task}\n\n"
    "## Suggested Improvements\n{improvements}\n\n"
    "## Available Tools\n{tools}\n\n"
    "## Previous Steps\n{steps}\n\n"
    "{memory}"
    "## Instructions\n"
    "Address the critique by gathering additional evidence with tools, "
    "verifying uncertain claims and filling identified gaps.\n"
    "DO NOT repeat failed actions with the same parameters.\n\n"
    "Respond with JSON:\n"
    "{{\n"
    '  "thought": "how you will address the critique",\n'
    '  "thought_type": "self_critique",\n'
    '  "action": {{\n'
    '    "tool": "tool_name",\n'
    '    "parameters": {{}},\n'
    '    "reasoning": "why this action addresses the critique"\n'
    "  }},\n"
    '  "confidence": 0,\n'
    '  "ready_to_synthesize": false\n'
    "}}"
)

_CRITIQUE_TEMPLATE = PromptTemplate.from_template(
    "Critically evaluate the following analysis output.\n\n"
    "## Original Task\n{task}\n\n"
    "## Analysis Output\n{output}\n\n"
    "## Findings\n{findings}\n\n"
    "## Uncertainties Noted\n{uncertainties}\n\n"
    "{memory}"
    "## Instructions\n"
    "Act as a skeptical reviewer. Identify:\n"
    "1. Potential weaknesses or gaps in the analysis\n"
    "2. Assumptions that may not hold\n"
    "3. Missing evidence or verification\n"
    "4. Areas where confidence may be inflated\n"
    "5. Whether the key insights were properly used in conclusions\n\n"
    "Respond with JSON:\n"
    "{{\n"
    '  "critiques": [\n'
    "    {{\n"
    '      "area": "area of concern",\n'
    '      "issue": "specific issue",\n'
    '      "severity": "minor|moderate|significant",\n'
    '      "suggestion": "how to improve"\n'
    "    }}\n"
    "  ],\n"
    '  "overall_assessment": "acceptable|needs_improvement|requires_revision",\n'
    '  "suggested_improvements": ["improvement 1", "improvement 2"],\n'
    '  "confidence_adjustment": 0\n'
    "}}\n\n"
    "confidence_adjustment is a number from -{limit} to +{limit}."
)


# ===================================================================== #
#  Formatting helpers                                                    #
# ===================================================================== #

def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def _json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _section(text: str) -> str:
    """Render an optional block followed by a blank line ('' when empty)."""
    return f"{text}\n\n" if text else ""


def format_previous_steps(steps: Sequence[ReasoningStep]) -> str:
    """Render the trace so far for inclusion in a prompt."""
    blocks: list[str] = []
    for step in steps:
        lines = [
            f"### Step {step.step_number}",
            f"**Thought** ({step.thought.type.value}): {step.thought.content}",
            f"**Confidence**: {step.confidence_after_step:g}%",
        ]
        if step.action is not None:
            lines.append(f"**Action**: {step.action.tool_name}({_json(dict(step.action.parameters))})")
            lines.append(f"**Reasoning**: {step.action.reasoning}")
        if step.observation is not None:
            if step.observation.success:
                result = _json(step.observation.result)[:OBSERVATION_PREVIEW_CHARS]
                lines.append(f"**Observation**: {result}")
            else:
                lines.append(f"**Observation**: ERROR - {step.observation.error}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_plan(plan: Plan) -> str:
    goals = ", ".join(f"{g.id}: {g.description} ({g.status.value})" for g in plan.goals)
    return (
        f"Main Goal: {plan.main_goal}\n"
        f"Goals: {goals or 'none'}\n"
        f"Critical Paths: {', '.join(plan.critical_paths) or 'none'}"
    )


def _tools_text(prompts: ReActPrompts, catalog: str) -> str:
    if prompts.available_tools_text:
        return f"{prompts.available_tools_text}\n\n{catalog}"
    return catalog


def _step_memory(memory: MemoryManager) -> str:
    return "".join(
        _section(block)
        for block in (
            memory.format_insights_for_prompt(),
            memory.format_failures_for_prompt(),
            memory.format_alternatives_for_prompt(),
        )
    )


# ===================================================================== #
#  Builders                                                              #
# ===================================================================== #

def build_planning_prompt(prompts: ReActPrompts, tool_catalog: str) -> str:
    return _PLANNING_TEMPLATE.format(
        task=prompts.task_description,
        tools=_tools_text(prompts, tool_catalog),
    )


def build_step_prompt(
    prompts: ReActPrompts,
    iteration: int,
    plan: Plan,
    tool_catalog: str,
    steps: Sequence[ReasoningStep],
    memory: MemoryManager,
    confidence_target: float,
) -> str:
    constraints = "\n".join(f"- {c}" for c in prompts.constraints) or "- None"
    return _STEP_TEMPLATE.format(
        iteration=iteration,
        task=prompts.task_description,
        plan=format_plan(plan),
        tools=_tools_text(prompts, tool_catalog),
        steps=format_previous_steps(steps) or "None yet - this is your first step.",
        memory=_step_memory(memory),
        constraints=constraints,
        target=f"{confidence_target:g}",
    )


def build_alternatives_prompt(
    action: Action,
    error: str,
    memory: MemoryManager,
    tool_catalog: str,
) -> str:
    failures = "\n".join(
        f"- {f.tool_name}({_json(dict(f.parameters))}): {f.error}"
        for f in memory.failed_attempts
    )
    return _ALTERNATIVES_TEMPLATE.format(
        tool=action.tool_name,
        parameters=_json(dict(action.parameters)),
        error=error,
        reasoning=action.reasoning or "(none given)",
        failures=failures or "None",
        tools=tool_catalog,
    )


def build_synthesis_prompt(
    prompts: ReActPrompts,
    steps: Sequence[ReasoningStep],
    memory: MemoryManager,
) -> str:
    return _SYNTHESIS_TEMPLATE.format(
        task=prompts.task_description,
        steps=format_previous_steps(steps) or "None",
        memory=_section(memory.format_insights_for_prompt()),
        schema=prompts.output_schema_text or "Any JSON object.",
    )


def build_improvement_prompt(
    prompts: ReActPrompts,
    improvements: Sequence[str],
    tool_catalog: str,
    steps: Sequence[ReasoningStep],
    memory: MemoryManager,
) -> str:
    return _IMPROVEMENT_TEMPLATE.format(
        task=prompts.task_description,
        improvements=", ".join(improvements) or "Strengthen the weakest findings.",
        tools=_tools_text(prompts, tool_catalog),
        steps=format_previous_steps(steps) or "None",
        memory=_step_memory(memory),
    )


def build_critique_prompt(
    prompts: ReActPrompts,
    synthesis: SynthesisResult[Any],
    memory: MemoryManager,
    adjustment_limit: float,
) -> str:
    findings = "\n".join(
        f"- {f.metric}: {f.value} ({f.assessment})" for f in synthesis.findings
    )
    return _CRITIQUE_TEMPLATE.format(
        task=prompts.task_description,
        output=json.dumps(_plain(synthesis.data), indent=2, default=str),
        findings=findings or "None",
        uncertainties="\n".join(synthesis.uncertainties) or "None noted",
        memory=_section(memory.format_insights_for_prompt()),
        limit=f"{adjustment_limit:g}",
    )
