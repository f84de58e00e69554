"""Synthesis stage: turn the trace into the validated final output.

One completion converts steps, insights and the output schema into a
result, a list of findings, an overall confidence and the uncertainties
the model is aware of.  The result must pass the caller's validator;
a rejection aborts the run instead of being papered over with defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from react_engine.domain.exceptions import OutputValidationError
from react_engine.domain.values import Evidence, ReasoningStep, ScoredFinding, SynthesisResult
from react_engine.infrastructure.llm import LLMClient
from react_engine.services.confidence import ConfidencePolicy
from react_engine.services.memory import MemoryManager
from react_engine.services.parsing import parse_model
from react_engine.services.prompts import ReActPrompts, build_synthesis_prompt
from react_engine.services.schemas import FindingOutput, SynthesisOutput

logger = logging.getLogger(__name__)

SYNTHESIS_TEMPERATURE = 0.2

OutputValidator = Union[type[BaseModel], Callable[[Any], Any]]


def validate_output(validator: OutputValidator, data: Any) -> Any:
    """Run *data* through *validator* and return the validated value.

    A pydantic model class validates with ``model_validate``.  Any other
    callable receives the raw data: returning ``False`` or raising rejects
    it, returning ``True`` or ``None`` accepts it unchanged, and any other
    return value replaces it.

    Raises
    ------
    OutputValidationError
        If the validator rejects *data*.
    """
    if isinstance(validator, type) and issubclass(validator, BaseModel):
        try:
            return validator.model_validate(data)
        except ValidationError as exc:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in exc.errors()
            ]
            raise OutputValidationError(
                f"Synthesized output does not match {validator.__name__}: {'; '.join(errors)}",
                errors=errors,
            ) from exc

    try:
        outcome = validator(data)
    except (ValueError, TypeError, ValidationError) as exc:
        raise OutputValidationError(
            f"Synthesized output rejected: {exc}", errors=[str(exc)],
        ) from exc
    if outcome is False:
        raise OutputValidationError("Synthesized output rejected by validator")
    if outcome is True or outcome is None:
        return data
    return outcome


def to_scored_finding(
    finding: FindingOutput,
    agent_name: str,
    policy: ConfidencePolicy,
    trace_id: str | None = None,
) -> ScoredFinding:
    """Normalize a declared finding into a ``ScoredFinding``."""
    evidence = tuple(
        Evidence(content=text, type="quote", source="analysis", confidence=finding.confidence / 100.0)
        for text in finding.evidence
    )
    return ScoredFinding(
        agent_name=agent_name,
        metric=finding.metric,
        category=finding.category,
        value=finding.value,
        unit=finding.unit,
        assessment=finding.assessment,
        confidence=policy.finding_confidence(finding.confidence, len(finding.evidence)),
        evidence=evidence,
        reasoning_trace_id=trace_id,
    )


class Synthesizer:
    """Produces ``SynthesisResult`` objects for a run.

    Parameters
    ----------
    llm:
        Completion client.
    validator:
        Pydantic model class or callable applied to the ``result`` field.
    policy:
        Scores each finding.
    complexity:
        Model tier of the synthesis call.
    """

    def __init__(
        self,
        llm: LLMClient,
        validator: OutputValidator,
        policy: ConfidencePolicy,
        complexity: str = "complex",
    ) -> None:
        self._llm = llm
        self._validator = validator
        self._policy = policy
        self._complexity = complexity

    async def synthesize(
        self,
        prompts: ReActPrompts,
        steps: Sequence[ReasoningStep],
        memory: MemoryManager,
        agent_name: str,
        trace_id: str | None = None,
    ) -> tuple[SynthesisResult[Any], float]:
        """Return ``(synthesis, cost)``.

        Raises
        ------
        ParseError
            If the answer cannot be read as a synthesis.
        OutputValidationError
            If the validator rejects the result.
        """
        completion = await self._llm.complete(
            build_synthesis_prompt(prompts, steps, memory),
            complexity=self._complexity,
            temperature=SYNTHESIS_TEMPERATURE,
            system_prompt=prompts.system,
        )
        output = parse_model(completion.content, SynthesisOutput, "synthesize")
        data = validate_output(self._validator, output.result)

        findings = tuple(
            to_scored_finding(f, agent_name, self._policy, trace_id) for f in output.findings
        )
        synthesis = SynthesisResult(
            data=data,
            findings=findings,
            confidence=output.confidence,
            supporting_evidence=tuple(e for f in output.findings for e in f.evidence),
            uncertainties=tuple(output.uncertainties),
        )
        logger.info(
            "Synthesizer: %d finding(s), confidence %.0f", len(findings), synthesis.confidence,
        )
        return synthesis, completion.cost
