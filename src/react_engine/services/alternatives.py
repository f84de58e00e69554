"""Backtracking suggestions after a failed tool call."""

from __future__ import annotations

import logging

from react_engine.domain.exceptions import ParseError
from react_engine.domain.values import Action, AlternativeAction
from react_engine.infrastructure.llm import LLMClient
from react_engine.services.memory import MemoryManager
from react_engine.services.parsing import parse_model
from react_engine.services.prompts import ALTERNATIVES_SYSTEM_PROMPT, build_alternatives_prompt
from react_engine.services.schemas import AlternativesOutput

logger = logging.getLogger(__name__)

ALTERNATIVES_COMPLEXITY = "simple"
ALTERNATIVES_TEMPERATURE = 0.5


class AlternativeAdvisor:
    """Asks the model for other ways to reach what a failed action aimed at."""

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def suggest(
        self,
        action: Action,
        error: str,
        memory: MemoryManager,
        tool_catalog: str,
    ) -> tuple[list[AlternativeAction], float]:
        """Return ``(alternatives, cost)``; unreadable answers yield none."""
        completion = await self._llm.complete(
            build_alternatives_prompt(action, error, memory, tool_catalog),
            complexity=ALTERNATIVES_COMPLEXITY,
            temperature=ALTERNATIVES_TEMPERATURE,
            system_prompt=ALTERNATIVES_SYSTEM_PROMPT,
        )
        try:
            output = parse_model(completion.content, AlternativesOutput, "request_alternatives")
        except ParseError as exc:
            logger.warning("No usable alternatives for '%s': %s", action.tool_name, exc)
            return [], completion.cost

        alternatives = [
            AlternativeAction(
                tool_name=alt.tool_name,
                parameters=dict(alt.parameters),
                reasoning=alt.reasoning,
                priority=alt.priority,
            )
            for alt in output.alternatives
        ]
        return alternatives, completion.cost
