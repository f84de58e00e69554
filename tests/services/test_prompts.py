"""Tests for the stage prompt builders."""

from __future__ import annotations

from react_engine.domain.values import (
    Action,
    ConfidenceScore,
    Observation,
    Plan,
    PlanGoal,
    ReasoningStep,
    ScoredFinding,
    SynthesisResult,
    Thought,
)
from react_engine.services.memory import MemoryManager
from react_engine.services.prompts import (
    ReActPrompts,
    build_alternatives_prompt,
    build_critique_prompt,
    build_improvement_prompt,
    build_planning_prompt,
    build_step_prompt,
    build_synthesis_prompt,
    format_plan,
    format_previous_steps,
)


def _steps() -> list[ReasoningStep]:
    ok = Action("get_revenue", {"source": "backup"}, "need ARR")
    bad = Action("get_revenue", {"source": "primary"}, "need ARR")
    return [
        ReasoningStep(0, Thought("Plan: assess ARR")),
        ReasoningStep(1, Thought("try primary"), bad, Observation(bad.id, False, error="down"), 30),
        ReasoningStep(2, Thought("try backup"), ok, Observation(ok.id, True, result={"arr": 5}), 60),
    ]


class TestFormatting:
    def test_previous_steps_show_actions_and_observations(self) -> None:
        text = format_previous_steps(_steps())
        assert "### Step 1" in text
        assert '**Action**: get_revenue({"source": "primary"})' in text
        assert "**Observation**: ERROR - down" in text
        assert '**Observation**: {"arr": 5}' in text
        assert "**Confidence**: 60%" in text

    def test_long_observation_truncated(self) -> None:
        action = Action("dump")
        step = ReasoningStep(1, Thought("t"), action, Observation(action.id, True, result="y" * 2000))
        line = format_previous_steps([step]).splitlines()[-1]
        assert len(line) == len("**Observation**: ") + 500

    def test_format_plan(self) -> None:
        plan = Plan(
            main_goal="Assess ARR",
            goals=(PlanGoal("G1", "Fetch ARR"),),
            critical_paths=("ARR first",),
        )
        assert format_plan(plan) == (
            "Main Goal: Assess ARR\nGoals: G1: Fetch ARR (pending)\nCritical Paths: ARR first"
        )


class TestBuilders:
    def test_planning_prompt(self, prompts: ReActPrompts) -> None:
        text = build_planning_prompt(prompts, "## get_revenue")
        assert "create a structured plan" in text
        assert prompts.task_description in text
        assert "## get_revenue" in text
        assert '"main_goal"' in text

    def test_step_prompt_includes_memory_and_target(self, prompts: ReActPrompts) -> None:
        memory = MemoryManager()
        memory.store_insight("arr", 5, "step-2", 90)
        memory.record_failure("get_revenue", {"source": "primary"}, "down", 1)
        text = build_step_prompt(
            prompts, 3, Plan(main_goal="Assess ARR"), "catalog", _steps(), memory, 80.0,
        )
        assert text.startswith("You are performing step 3")
        assert "## Key Insights Discovered" in text
        assert "## Failed Attempts (DO NOT REPEAT)" in text
        assert "- Cite the source of every number" in text
        assert "confidence of at least 80 before synthesizing" in text

    def test_first_step_prompt(self, prompts: ReActPrompts) -> None:
        text = build_step_prompt(
            prompts, 1, Plan(main_goal="x"), "catalog", [], MemoryManager(), 75.5,
        )
        assert "None yet - this is your first step." in text
        assert "at least 75.5 before" in text
        assert "## Key Insights" not in text

    def test_available_tools_text_prepended(self) -> None:
        prompts = ReActPrompts(
            system="s", task_description="t", available_tools_text="Prefer filings.",
        )
        text = build_planning_prompt(prompts, "CATALOG")
        assert "Prefer filings.\n\nCATALOG" in text

    def test_alternatives_prompt(self) -> None:
        memory = MemoryManager()
        memory.record_failure("get_revenue", {"source": "primary"}, "down", 1)
        action = Action("get_revenue", {"source": "primary"})
        text = build_alternatives_prompt(action, "down", memory, "catalog")
        assert text.startswith("A tool action failed")
        assert '- Parameters: {"source": "primary"}' in text
        assert "- Reasoning: (none given)" in text
        assert '- get_revenue({"source": "primary"}): down' in text

    def test_synthesis_prompt_uses_schema(self, prompts: ReActPrompts) -> None:
        text = build_synthesis_prompt(prompts, _steps(), MemoryManager())
        assert "synthesize your findings" in text
        assert prompts.output_schema_text in text

    def test_improvement_prompt(self, prompts: ReActPrompts) -> None:
        text = build_improvement_prompt(
            prompts, ["verify ARR", "add churn"], "catalog", _steps(), MemoryManager(),
        )
        assert text.startswith("Based on self-critique feedback")
        assert "verify ARR, add churn" in text

    def test_critique_prompt(self, prompts: ReActPrompts) -> None:
        finding = ScoredFinding(
            agent_name="a",
            metric="arr",
            confidence=ConfidenceScore.insufficient(),
            value=5,
            assessment="solid",
        )
        synthesis = SynthesisResult(
            data={"verdict": "healthy"}, findings=(finding,), uncertainties=("churn unknown",),
        )
        text = build_critique_prompt(prompts, synthesis, MemoryManager(), 10)
        assert text.startswith("Critically evaluate")
        assert '"verdict": "healthy"' in text
        assert "- arr: 5 (solid)" in text
        assert "churn unknown" in text
        assert "from -10 to +10" in text
