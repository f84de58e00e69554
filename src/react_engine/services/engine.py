"""ReAct execution engine.

``ReActEngine`` runs the full Reasoning-Action-Observation cycle for one
agent::

    PLANNING -> ITERATING -> SYNTHESIZING -> (CRITIQUING <-> IMPROVING)* -> DONE
                                                         any failure -> FAILED

1. **Plan** -- decompose the task into goals (step 0 of the trace).
2. **Iterate** -- ask the model for a thought and optional tool call, run
   the tool, observe, remember, and backtrack on failure, until the model
   is ready (or confident enough) and the minimum number of iterations ran.
3. **Synthesize** -- turn the trace into the validated output.
4. **Critique** -- while the synthesis is not confident enough, review it,
   optionally run one improvement step and synthesize again.

Every awaited model or tool call is raced against the run's total
wall-clock budget.  ``run`` never raises: failures come back as a
``ReActOutput`` with ``success=False`` and the partial trace.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from react_engine.domain.enums import EngineState, ThoughtType
from react_engine.domain.events import (
    CritiqueCompleted,
    DomainEvent,
    PlanCreated,
    RunFinished,
    RunStarted,
    StepRecorded,
    SynthesisCompleted,
    ToolFailed,
)
from react_engine.domain.exceptions import ParseError, ReActError, ReActTimeoutError
from react_engine.domain.values import (
    Action,
    AlternativeAction,
    ConfidenceScore,
    Observation,
    Plan,
    ReActOutput,
    ReasoningStep,
    ReasoningTrace,
    SelfCritiqueResult,
    SynthesisResult,
    Thought,
)
from react_engine.infrastructure.config import ReActConfig
from react_engine.infrastructure.event_bus import AsyncEventBus
from react_engine.infrastructure.llm import LLMClient
from react_engine.services.alternatives import AlternativeAdvisor
from react_engine.services.confidence import ConfidencePolicy, DefaultConfidencePolicy, RunStats
from react_engine.services.critique import SelfCritic, apply_adjustment
from react_engine.services.insights import InsightExtractorRegistry
from react_engine.services.memory import MemoryManager
from react_engine.services.parsing import parse_json_response, parse_model
from react_engine.services.planning import Planner
from react_engine.services.prompts import (
    AgentContext,
    ReActPrompts,
    build_improvement_prompt,
    build_step_prompt,
)
from react_engine.services.schemas import StepResponse
from react_engine.services.synthesis import OutputValidator, Synthesizer
from react_engine.tools.definitions import ToolContext, ToolExecutionOptions
from react_engine.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

PLAN_STEP_CONFIDENCE = 20.0
PLAN_INSIGHT_CONFIDENCE = 100.0
DEFAULT_AGENT_NAME = "react-engine"


# ===================================================================== #
#  Deadline                                                              #
# ===================================================================== #

class Deadline:
    """Total wall-clock budget of a run.

    Parameters
    ----------
    timeout_ms:
        Budget in milliseconds, counted from construction.
    clock:
        Monotonic clock in seconds.  Injectable for tests.
    """

    def __init__(self, timeout_ms: int, clock: Any = time.monotonic) -> None:
        self._timeout_ms = timeout_ms
        self._clock = clock
        self._expires_at = clock() + timeout_ms / 1000.0

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def remaining_s(self) -> float:
        return self._expires_at - self._clock()

    @property
    def expired(self) -> bool:
        return self.remaining_s <= 0

    def _error(self) -> ReActTimeoutError:
        return ReActTimeoutError(
            f"ReAct loop timeout after {self._timeout_ms}ms", timeout_ms=self._timeout_ms,
        )

    def check(self) -> None:
        """Raise ``ReActTimeoutError`` once the budget is spent."""
        if self.expired:
            raise self._error()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* within the remaining budget."""
        remaining = self.remaining_s
        if remaining <= 0:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise self._error()
        try:
            return await asyncio.wait_for(awaitable, timeout=remaining)
        except asyncio.TimeoutError as exc:
            raise self._error() from exc


# ===================================================================== #
#  Per-run state                                                         #
# ===================================================================== #

@dataclass
class _Run:
    """Mutable bookkeeping of one run; never leaves the engine."""

    agent_name: str
    context: AgentContext
    deadline: Deadline
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started: float = field(default_factory=time.perf_counter)
    memory: MemoryManager = field(default_factory=MemoryManager)
    steps: list[ReasoningStep] = field(default_factory=list)
    state: EngineState = EngineState.PLANNING
    iteration: int = 0
    cost: float = 0.0
    plan: Plan | None = None

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started) * 1000.0


# ===================================================================== #
#  Engine                                                                #
# ===================================================================== #

class ReActEngine:
    """Runs ReAct analyses for one agent definition.

    Parameters
    ----------
    prompts:
        The agent's system prompt, task, output schema and constraints.
    output_validator:
        Pydantic model class or callable applied to the synthesized result.
    registry:
        Tools available to the agent.
    llm:
        Completion client.
    config:
        Loop parameters; defaults to ``ReActConfig()``.
    confidence_policy:
        Finding and run confidence heuristics.
    insight_extractors:
        Tool-specific insight extraction; unknown tools use the generic
        extractor.
    event_bus:
        Optional bus receiving the run's lifecycle events.
    """

    def __init__(
        self,
        prompts: ReActPrompts,
        output_validator: OutputValidator,
        registry: ToolRegistry,
        llm: LLMClient,
        config: ReActConfig | None = None,
        confidence_policy: ConfidencePolicy | None = None,
        insight_extractors: InsightExtractorRegistry | None = None,
        event_bus: AsyncEventBus | None = None,
    ) -> None:
        self._config = config or ReActConfig()
        self._config.validate()
        self._prompts = prompts
        self._registry = registry
        self._llm = llm
        self._policy = confidence_policy or DefaultConfidencePolicy()
        self._extractors = insight_extractors or InsightExtractorRegistry()
        self._bus = event_bus

        self._planner = Planner(llm)
        self._advisor = AlternativeAdvisor(llm)
        self._synthesizer = Synthesizer(
            llm, output_validator, self._policy, complexity=self._config.model_complexity,
        )
        self._critic = SelfCritic(llm, adjustment_limit=self._config.critique_adjustment_limit)
        self._tool_options = ToolExecutionOptions(
            timeout_ms=self._config.tool_timeout_ms,
            retries=self._config.tool_retries,
        )

    @property
    def config(self) -> ReActConfig:
        return self._config

    @property
    def prompts(self) -> ReActPrompts:
        return self._prompts

    # ------------------------------------------------------------------ #
    #  Public API                                                         #
    # ------------------------------------------------------------------ #

    async def run(
        self,
        context: AgentContext,
        agent_name: str = DEFAULT_AGENT_NAME,
    ) -> ReActOutput[Any]:
        """Execute one full run and return its output envelope."""
        run = _Run(
            agent_name=agent_name,
            context=context,
            deadline=Deadline(self._config.total_timeout_ms),
        )
        logger.info("ReActEngine[%s]: run %s started", agent_name, run.id)
        await self._emit(RunStarted(run_id=run.id, agent_name=agent_name, session_id=context.session_id))

        try:
            output = await self._execute(run)
        except ReActError as exc:
            logger.error("ReActEngine[%s]: run %s failed: %s", agent_name, run.id, exc)
            output = self._failure(run, exc)
        except Exception as exc:
            logger.exception("ReActEngine[%s]: run %s aborted", agent_name, run.id)
            output = self._failure(run, exc)

        await self._emit(
            RunFinished(
                run_id=run.id,
                success=output.success,
                final_state=output.reasoning_trace.final_state,
                confidence=output.confidence.score,
                cost=output.cost,
                error=output.error,
            )
        )
        return output

    # ------------------------------------------------------------------ #
    #  Stages                                                              #
    # ------------------------------------------------------------------ #

    async def _execute(self, run: _Run) -> ReActOutput[Any]:
        config = self._config
        catalog = self._registry.get_tool_descriptions()

        plan = await self._plan(run, catalog)

        self._transition(run, EngineState.ITERATING)
        while run.iteration < config.max_iterations:
            run.iteration += 1
            run.deadline.check()
            response = await self._ask_step(run, plan, catalog)
            step = await self._step_from_response(run, response, catalog)
            await self._record(run, step)

            if run.iteration >= config.min_iterations and (
                response.ready_to_synthesize
                or response.confidence >= config.early_stop_confidence
            ):
                logger.debug(
                    "ReActEngine[%s]: stopping after iteration %d (ready=%s, confidence=%.0f)",
                    run.agent_name, run.iteration, response.ready_to_synthesize, response.confidence,
                )
                break

        self._transition(run, EngineState.SYNTHESIZING)
        synthesis = await self._synthesize(run)
        synthesis, adjustment = await self._critique_cycle(run, synthesis, catalog)

        confidence = self._policy.run_confidence(
            RunStats.from_steps(run.steps, run.memory.summary().insight_count),
            critique_adjustment=adjustment,
        )
        self._transition(run, EngineState.DONE)
        trace = self._trace(run, final_confidence=confidence.score)
        logger.info(
            "ReActEngine[%s]: run %s done in %d iteration(s), confidence %.0f (%s), cost %.4f",
            run.agent_name, run.id, run.iteration, confidence.score, confidence.level.value, run.cost,
        )
        return ReActOutput(
            success=True,
            result=synthesis.data,
            confidence=confidence,
            reasoning_trace=trace,
            findings=synthesis.findings,
            execution_time_ms=trace.execution_time_ms,
            cost=run.cost,
        )

    async def _plan(self, run: _Run, catalog: str) -> Plan:
        plan, cost = await run.deadline.run(self._planner.create_plan(self._prompts, catalog))
        run.cost += cost
        run.plan = plan
        run.memory.store_insight("initial_plan", plan, "planning", PLAN_INSIGHT_CONFIDENCE)
        await self._emit(PlanCreated(run_id=run.id, plan=plan))
        await self._record(
            run,
            ReasoningStep(
                step_number=0,
                thought=Thought(content=plan.describe(), type=ThoughtType.PLANNING),
                confidence_after_step=PLAN_STEP_CONFIDENCE,
            ),
        )
        return plan

    async def _ask_step(self, run: _Run, plan: Plan, catalog: str) -> StepResponse:
        prompt = build_step_prompt(
            self._prompts,
            run.iteration,
            plan,
            catalog,
            run.steps,
            run.memory,
            self._config.confidence_threshold,
        )
        return await self._ask_for_step(run, prompt, "next_step")

    async def _ask_for_step(self, run: _Run, prompt: str, context: str) -> StepResponse:
        """Ask for a step response, re-asking on unreadable answers."""
        attempts = 1 + self._config.max_validation_retries
        last_error: ParseError | None = None
        for attempt in range(1, attempts + 1):
            completion = await run.deadline.run(
                self._llm.complete(
                    prompt,
                    complexity=self._config.model_complexity,
                    temperature=self._config.temperature,
                    system_prompt=self._prompts.system,
                )
            )
            run.cost += completion.cost
            try:
                if self._config.enable_validation:
                    return parse_model(completion.content, StepResponse, context)
                return StepResponse.lenient(parse_json_response(completion.content, context))
            except ParseError as exc:
                last_error = exc
                logger.warning(
                    "ReActEngine[%s]: unreadable %s response (attempt %d/%d): %s",
                    run.agent_name, context, attempt, attempts, exc,
                )
        assert last_error is not None
        raise last_error

    async def _step_from_response(
        self, run: _Run, response: StepResponse, catalog: str,
    ) -> ReasoningStep:
        thought = Thought(content=response.thought, type=response.thought_type)
        action: Action | None = None
        observation: Observation | None = None
        source = f"step-{run.iteration}"

        if not response.ready_to_synthesize:
            if response.action is not None:
                action, observation = await self._act(
                    run,
                    response.action.tool,
                    response.action.parameters,
                    response.action.reasoning,
                    catalog,
                    source,
                )
            elif run.memory.has_alternatives():
                alternative = self._next_untried_alternative(run.memory)
                if alternative is not None:
                    logger.debug(
                        "ReActEngine[%s]: backtracking to alternative '%s'",
                        run.agent_name, alternative.tool_name,
                    )
                    action, observation = await self._act(
                        run,
                        alternative.tool_name,
                        alternative.parameters,
                        alternative.reasoning or "Backtracking to a queued alternative",
                        catalog,
                        source,
                    )

        return ReasoningStep(
            step_number=run.iteration,
            thought=thought,
            action=action,
            observation=observation,
            confidence_after_step=response.confidence,
        )

    @staticmethod
    def _next_untried_alternative(memory: MemoryManager) -> AlternativeAction | None:
        while memory.has_alternatives():
            alternative = memory.pop_alternative()
            if alternative is not None and not memory.has_already_failed(
                alternative.tool_name, alternative.parameters
            ):
                return alternative
        return None

    async def _act(
        self,
        run: _Run,
        tool_name: str,
        parameters: Mapping[str, Any],
        reasoning: str,
        catalog: str,
        source: str,
    ) -> tuple[Action | None, Observation]:
        """Execute one tool call, or skip it if it already failed."""
        params = dict(parameters)
        if run.memory.has_already_failed(tool_name, params):
            logger.debug("ReActEngine[%s]: skipping known failure %s", run.agent_name, tool_name)
            observation = Observation.skipped()
            await self._emit(
                ToolFailed(
                    run_id=run.id,
                    tool_name=tool_name,
                    error=observation.error or "",
                    step_number=run.iteration,
                    alternatives_queued=len(run.memory.pending_alternatives),
                )
            )
            return None, observation

        action = Action(tool_name=tool_name, parameters=params, reasoning=reasoning)
        run.memory.discard_alternative(tool_name, params)
        tool_context = ToolContext(
            session_id=run.context.session_id,
            agent_name=run.agent_name,
            agent_context=run.context.data,
            previous_steps=tuple(run.steps),
            memory=run.memory,
        )
        result = await run.deadline.run(
            self._registry.execute(tool_name, params, tool_context, self._tool_options)
        )
        observation = Observation(
            action_id=action.id,
            success=result.success,
            result=result.data,
            error=result.error,
            execution_time_ms=result.execution_time_ms,
            from_cache=result.from_cache,
        )
        logger.debug(
            "ReActEngine[%s]: %s -> success=%s cached=%s",
            run.agent_name, tool_name, result.success, result.from_cache,
        )

        if result.success:
            for insight in self._extractors.extract(tool_name, result.data):
                run.memory.store_insight(insight.key, insight.value, source, insight.confidence)
            return action, observation

        error = result.error or "Unknown error"
        run.memory.record_failure(tool_name, params, error, run.iteration)
        alternatives, cost = await run.deadline.run(
            self._advisor.suggest(action, error, run.memory, catalog)
        )
        run.cost += cost
        if alternatives:
            run.memory.queue_alternatives(alternatives)
        logger.warning(
            "ReActEngine[%s]: tool '%s' failed (%s); %d alternative(s) queued",
            run.agent_name, tool_name, error, len(run.memory.pending_alternatives),
        )
        await self._emit(
            ToolFailed(
                run_id=run.id,
                tool_name=tool_name,
                error=error,
                step_number=run.iteration,
                alternatives_queued=len(run.memory.pending_alternatives),
            )
        )
        return action, observation

    async def _synthesize(self, run: _Run) -> SynthesisResult[Any]:
        synthesis, cost = await run.deadline.run(
            self._synthesizer.synthesize(
                self._prompts, run.steps, run.memory, run.agent_name, trace_id=run.id,
            )
        )
        run.cost += cost
        await self._emit(
            SynthesisCompleted(
                run_id=run.id,
                confidence=synthesis.confidence,
                findings_count=len(synthesis.findings),
            )
        )
        return synthesis

    async def _critique_cycle(
        self, run: _Run, synthesis: SynthesisResult[Any], catalog: str,
    ) -> tuple[SynthesisResult[Any], float]:
        """Critique and improve; return the final synthesis and applied adjustment."""
        config = self._config
        critiques_run = 0
        applied = 0.0

        while (
            config.enable_self_critique
            and synthesis.confidence < config.self_critique_threshold
            and critiques_run < config.max_critique_iterations
        ):
            critiques_run += 1
            self._transition(run, EngineState.CRITIQUING)
            critique, cost = await run.deadline.run(
                self._critic.critique(self._prompts, synthesis, run.memory)
            )
            run.cost += cost
            await self._emit(
                CritiqueCompleted(
                    run_id=run.id,
                    assessment=critique.overall_assessment,
                    confidence_adjustment=critique.confidence_adjustment,
                )
            )

            if critique.requires_revision and run.iteration < config.max_iterations:
                self._transition(run, EngineState.IMPROVING)
                await self._improve(run, critique, critiques_run, catalog)
                self._transition(run, EngineState.SYNTHESIZING)
                synthesis = await self._synthesize(run)
                continue

            synthesis = apply_adjustment(synthesis, critique.confidence_adjustment)
            applied = critique.confidence_adjustment
            break

        return synthesis, applied

    async def _improve(
        self, run: _Run, critique: SelfCritiqueResult, pass_number: int, catalog: str,
    ) -> None:
        prompt = build_improvement_prompt(
            self._prompts,
            critique.suggested_improvements,
            catalog,
            run.steps,
            run.memory,
        )
        response = await self._ask_for_step(run, prompt, "improvement_step")
        run.iteration += 1

        action: Action | None = None
        observation: Observation | None = None
        if response.action is not None:
            action, observation = await self._act(
                run,
                response.action.tool,
                response.action.parameters,
                response.action.reasoning,
                catalog,
                f"improvement-{pass_number}",
            )
        await self._record(
            run,
            ReasoningStep(
                step_number=run.iteration,
                thought=Thought(
                    content=f"Self-critique revision: {response.thought}",
                    type=ThoughtType.SELF_CRITIQUE,
                ),
                action=action,
                observation=observation,
                confidence_after_step=response.confidence,
            ),
        )

    # ------------------------------------------------------------------ #
    #  Helpers                                                             #
    # ------------------------------------------------------------------ #

    async def _record(self, run: _Run, step: ReasoningStep) -> None:
        run.steps.append(step)
        await self._emit(StepRecorded(run_id=run.id, step=step, state=run.state))

    def _transition(self, run: _Run, state: EngineState) -> None:
        logger.debug(
            "ReActEngine[%s]: %s -> %s", run.agent_name, run.state.value, state.value,
        )
        run.state = state

    async def _emit(self, event: DomainEvent) -> None:
        if self._bus is not None:
            await self._bus.publish(event)

    def _trace(
        self,
        run: _Run,
        final_confidence: float,
        final_state: EngineState | None = None,
    ) -> ReasoningTrace:
        return ReasoningTrace(
            id=run.id,
            agent_name=run.agent_name,
            task_description=self._prompts.task_description,
            steps=tuple(run.steps),
            total_iterations=run.iteration,
            final_confidence=final_confidence,
            execution_time_ms=run.elapsed_ms,
            final_state=final_state or run.state,
        )

    def _failure(self, run: _Run, exc: BaseException) -> ReActOutput[Any]:
        failed_in = run.state
        self._transition(run, EngineState.FAILED)
        trace = self._trace(run, final_confidence=0.0, final_state=EngineState.FAILED)
        logger.debug(
            "ReActEngine[%s]: run %s failed while %s", run.agent_name, run.id, failed_in.value,
        )
        return ReActOutput(
            success=False,
            result=None,
            confidence=ConfidenceScore.insufficient(),
            reasoning_trace=trace,
            findings=(),
            execution_time_ms=trace.execution_time_ms,
            cost=run.cost,
            error=str(exc) or type(exc).__name__,
        )


def create_react_engine(
    prompts: ReActPrompts,
    output_validator: OutputValidator,
    registry: ToolRegistry,
    llm: LLMClient,
    config: ReActConfig | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> ReActEngine:
    """Build a ``ReActEngine``; *config* may be a ``ReActConfig`` or a plain dict."""
    if isinstance(config, Mapping):
        config = ReActConfig.from_dict(dict(config))
    return ReActEngine(prompts, output_validator, registry, llm, config=config, **kwargs)
