"""Self-critique stage: a skeptical review of the synthesized output."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from react_engine.domain.enums import CritiqueAssessment
from react_engine.domain.exceptions import ParseError
from react_engine.domain.values import Critique, SelfCritiqueResult, SynthesisResult
from react_engine.infrastructure.llm import LLMClient
from react_engine.services.confidence import clamp_score
from react_engine.services.memory import MemoryManager
from react_engine.services.parsing import parse_model
from react_engine.services.prompts import CRITIC_SYSTEM_PROMPT, ReActPrompts, build_critique_prompt
from react_engine.services.schemas import CritiqueOutput

logger = logging.getLogger(__name__)

CRITIQUE_COMPLEXITY = "medium"
CRITIQUE_TEMPERATURE = 0.3


def clamp_adjustment(value: float, limit: float) -> float:
    return max(-limit, min(limit, value))


def apply_adjustment(synthesis: SynthesisResult[Any], adjustment: float) -> SynthesisResult[Any]:
    """Return *synthesis* with its confidence shifted and clamped to [0, 100]."""
    return dataclasses.replace(synthesis, confidence=clamp_score(synthesis.confidence + adjustment))


class SelfCritic:
    """Reviews a synthesis and suggests whether it needs more work.

    Parameters
    ----------
    llm:
        Completion client.
    adjustment_limit:
        Largest confidence change, up or down, a critique may apply.
    """

    def __init__(self, llm: LLMClient, adjustment_limit: float = 10.0) -> None:
        self._llm = llm
        self._limit = adjustment_limit

    async def critique(
        self,
        prompts: ReActPrompts,
        synthesis: SynthesisResult[Any],
        memory: MemoryManager,
    ) -> tuple[SelfCritiqueResult, float]:
        """Return ``(critique, cost)``; an unreadable review counts as acceptable."""
        completion = await self._llm.complete(
            build_critique_prompt(prompts, synthesis, memory, self._limit),
            complexity=CRITIQUE_COMPLEXITY,
            temperature=CRITIQUE_TEMPERATURE,
            system_prompt=CRITIC_SYSTEM_PROMPT,
        )
        try:
            output = parse_model(completion.content, CritiqueOutput, "self_critique")
        except ParseError as exc:
            logger.warning("SelfCritic: unreadable critique treated as acceptable: %s", exc)
            return SelfCritiqueResult(overall_assessment=CritiqueAssessment.ACCEPTABLE), completion.cost

        result = SelfCritiqueResult(
            overall_assessment=output.overall_assessment,
            critiques=tuple(
                Critique(area=c.area, issue=c.issue, severity=c.severity, suggestion=c.suggestion)
                for c in output.critiques
            ),
            suggested_improvements=tuple(output.suggested_improvements),
            confidence_adjustment=clamp_adjustment(output.confidence_adjustment, self._limit),
        )
        logger.info(
            "SelfCritic: %s with %d issue(s), adjustment %+.1f",
            result.overall_assessment.value, len(result.critiques), result.confidence_adjustment,
        )
        return result, completion.cost
