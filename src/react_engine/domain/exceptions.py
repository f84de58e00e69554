"""Domain exceptions for the ReAct engine.

All engine-specific exceptions inherit from ``ReActError`` so callers can
catch the full family with a single ``except`` clause when needed.  Errors
that happen *inside* a step (tool validation, tool execution) are never
raised; they travel as failed ``ToolResult`` values instead.
"""

from __future__ import annotations

from typing import Any


class ReActError(Exception):
    """Base exception for all ReAct engine errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ParseError(ReActError):
    """Raised when model output cannot be turned into strict JSON.

    Carries the parsing ``context`` (which stage asked for the parse) and a
    truncated single-line ``preview`` of the raw text for diagnostics.
    """

    def __init__(
        self,
        message: str = "Failed to parse model response",
        context: str = "",
        preview: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.context = context
        self.preview = preview


class ToolDefinitionError(ReActError):
    """Raised at registration time when a tool declaration is inconsistent.

    Examples: duplicate parameter names, a default that does not match the
    declared type, or an enum declared on a non-string parameter.
    """

    def __init__(
        self,
        message: str = "Invalid tool definition",
        tool_name: str = "",
        issues: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.tool_name = tool_name
        self.issues: list[str] = issues or []


class OutputValidationError(ReActError):
    """Raised when the caller-supplied validator rejects the synthesized output."""

    def __init__(
        self,
        message: str = "Synthesized output failed validation",
        errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.errors: list[str] = errors or []


class ReActTimeoutError(ReActError):
    """Raised when a run exhausts its total wall-clock budget."""

    def __init__(
        self,
        message: str = "ReAct loop timeout",
        timeout_ms: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.timeout_ms = timeout_ms
