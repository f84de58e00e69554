"""Tool declarations and the tool registry."""

from react_engine.tools.definitions import (
    TimedToolResult,
    ToolContext,
    ToolDefinition,
    ToolExecutionOptions,
    ToolParameter,
    ToolResult,
)
from react_engine.tools.registry import ToolRegistry, cache_key

__all__ = [
    "ToolParameter",
    "ToolDefinition",
    "ToolContext",
    "ToolResult",
    "TimedToolResult",
    "ToolExecutionOptions",
    "ToolRegistry",
    "cache_key",
]
