"""Tool implementations shared by the test suite."""

from __future__ import annotations

import asyncio
from typing import Any

from react_engine.domain.enums import ParamType
from react_engine.tools.definitions import ToolContext, ToolParameter, ToolResult
from react_engine.tools.registry import ToolRegistry

REVENUE_PARAMETERS = (
    ToolParameter(
        "source",
        ParamType.STRING,
        "Where to read revenue from",
        required=False,
        default="primary",
        enum=("primary", "backup", "filings"),
    ),
)


class RevenueTool:
    """Async tool implementation that records every call it receives.

    Calls whose ``source`` is listed in *failing_sources* report a failure;
    the others return a small revenue record.
    """

    def __init__(
        self,
        failing_sources: tuple[str, ...] = ("primary",),
        delay_s: float = 0.0,
    ) -> None:
        self.failing_sources = failing_sources
        self.delay_s = delay_s
        self.calls: list[dict[str, Any]] = []

    async def __call__(self, params: dict[str, Any], context: ToolContext) -> ToolResult:
        self.calls.append(dict(params))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        source = params.get("source")
        if source in self.failing_sources:
            return ToolResult.fail(f"Source {source} unavailable")
        return ToolResult.ok({"arr": 1_200_000, "source": source})


def register_revenue_tool(registry: ToolRegistry, tool: RevenueTool) -> None:
    registry.tool("get_revenue", "Fetch annual recurring revenue", REVENUE_PARAMETERS)(tool)
