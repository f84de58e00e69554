"""Shared fixtures for the ReAct engine test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from react_engine.infrastructure.cache import ToolResultCache
from react_engine.infrastructure.config import ReActConfig
from react_engine.infrastructure.llm import ChatModelClient
from react_engine.services.engine import ReActEngine
from react_engine.services.prompts import AgentContext, ReActPrompts
from react_engine.testing import ScriptedChatModel
from react_engine.tools.definitions import ToolContext
from react_engine.tools.registry import ToolRegistry
from tests.helpers.tools import RevenueTool, register_revenue_tool


def _is_object(data: Any) -> bool:
    return isinstance(data, dict)


# ---------------------------------------------------------------------------
# Prompt and context fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def prompts() -> ReActPrompts:
    return ReActPrompts(
        system="You are a diligent financial analyst.",
        task_description="Assess the revenue quality of Acme Corp.",
        output_schema_text='{"verdict": "string", "score": "number"}',
        constraints=("Cite the source of every number",),
    )


@pytest.fixture
def agent_context() -> AgentContext:
    return AgentContext(session_id="session-1", data={"company": "Acme Corp"})


@pytest.fixture
def tool_context() -> ToolContext:
    return ToolContext(session_id="session-1", agent_name="analyst")


# ---------------------------------------------------------------------------
# Tool fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def revenue_tool() -> RevenueTool:
    return RevenueTool()


@pytest.fixture
def cache() -> ToolResultCache:
    return ToolResultCache()


@pytest.fixture
def registry(cache: ToolResultCache, revenue_tool: RevenueTool) -> ToolRegistry:
    reg = ToolRegistry(cache=cache)
    register_revenue_tool(reg, revenue_tool)
    return reg


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fast_config() -> ReActConfig:
    """Short loop with generous time budgets."""
    return ReActConfig(
        max_iterations=3,
        min_iterations=1,
        total_timeout_ms=5_000,
        tool_timeout_ms=1_000,
    )


@pytest.fixture
def make_engine(
    prompts: ReActPrompts,
    registry: ToolRegistry,
    fast_config: ReActConfig,
) -> Callable[..., ReActEngine]:
    """Factory building an engine around a ``ScriptedChatModel``."""

    def _make(
        model: ScriptedChatModel,
        config: ReActConfig | None = None,
        *,
        validator: Any = _is_object,
        tools: ToolRegistry | None = None,
        **kwargs: Any,
    ) -> ReActEngine:
        return ReActEngine(
            prompts,
            validator,
            tools if tools is not None else registry,
            ChatModelClient(model),
            config=config or fast_config,
            **kwargs,
        )

    return _make
