"""Planning stage: decompose the task into goals before acting.

The planner issues one completion and turns the answer into a ``Plan``.
An unreadable answer is not fatal; the run continues with a minimal
fallback plan built from the task description.  LLM client failures and
deadline expiry still propagate.
"""

from __future__ import annotations

import logging

from react_engine.domain.enums import GoalStatus
from react_engine.domain.exceptions import ParseError
from react_engine.domain.values import Plan, PlanGoal
from react_engine.infrastructure.llm import LLMClient
from react_engine.services.parsing import parse_model
from react_engine.services.prompts import ReActPrompts, build_planning_prompt
from react_engine.services.schemas import PlanOutput

logger = logging.getLogger(__name__)

PLANNING_COMPLEXITY = "medium"
PLANNING_TEMPERATURE = 0.2


def fallback_plan(prompts: ReActPrompts) -> Plan:
    """Minimal plan used when the model's plan cannot be read."""
    return Plan(main_goal=prompts.task_description, fallback=True)


def plan_from_output(output: PlanOutput) -> Plan:
    goals = tuple(
        PlanGoal(
            id=goal.id or f"G{index}",
            description=goal.description,
            subgoals=tuple(goal.subgoals),
            status=goal.status if isinstance(goal.status, GoalStatus) else GoalStatus.PENDING,
            required_tools=tuple(goal.required_tools),
        )
        for index, goal in enumerate(output.goals, start=1)
    )
    return Plan(
        main_goal=output.main_goal,
        goals=goals,
        estimated_steps=output.estimated_steps,
        critical_paths=tuple(output.critical_paths),
    )


class Planner:
    """Produces the initial ``Plan`` of a run.

    Parameters
    ----------
    llm:
        Completion client.
    """

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def create_plan(self, prompts: ReActPrompts, tool_catalog: str) -> tuple[Plan, float]:
        """Return ``(plan, cost)``."""
        completion = await self._llm.complete(
            build_planning_prompt(prompts, tool_catalog),
            complexity=PLANNING_COMPLEXITY,
            temperature=PLANNING_TEMPERATURE,
            system_prompt=prompts.system,
        )
        try:
            output = parse_model(completion.content, PlanOutput, "create_plan")
        except ParseError as exc:
            logger.warning("Planner: unusable plan, falling back to task description: %s", exc)
            return fallback_plan(prompts), completion.cost

        plan = plan_from_output(output)
        logger.info(
            "Planner: %d goal(s), ~%d step(s) for '%s'",
            len(plan.goals), plan.estimated_steps, plan.main_goal,
        )
        return plan, completion.cost
