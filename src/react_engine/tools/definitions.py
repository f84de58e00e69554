"""Typed tool declarations for the ReAct engine.

A tool is a named async callable with a declared parameter list.  The
declaration is checked once, when the tool is registered, and every call
is checked against it before the tool runs.

Errors during a call are *values*: a tool that is unknown, called with bad
parameters, raises, or times out produces a ``ToolResult`` with
``success=False`` and an ``error_code``.  Only a malformed declaration
raises (``ToolDefinitionError``, at registration time).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from react_engine.domain.enums import ParamType, ToolErrorCode
from react_engine.domain.values import ReasoningStep

if TYPE_CHECKING:
    from react_engine.services.memory import MemoryManager


# ===================================================================== #
#  Declarations                                                          #
# ===================================================================== #

@dataclass(frozen=True)
class ToolParameter:
    """One declared parameter of a tool.

    Attributes
    ----------
    name:
        Parameter key in the call's parameter mapping.
    type:
        Declared JSON-ish type.
    description:
        Shown to the model in the tool catalog.
    required:
        Whether a call must supply the parameter.
    default:
        Value filled in when an optional parameter is omitted.
    enum:
        Allowed values (string parameters only).
    """

    name: str
    type: ParamType
    description: str = ""
    required: bool = True
    default: Any = None
    enum: tuple[str, ...] = ()


ToolExecuteFn = Callable[[dict[str, Any], "ToolContext"], Awaitable[Any]]


@dataclass(frozen=True)
class ToolDefinition:
    """A registrable tool: name, description, parameters and implementation."""

    name: str
    description: str
    parameters: tuple[ToolParameter, ...]
    execute: ToolExecuteFn


@dataclass(frozen=True)
class ToolContext:
    """Per-call context handed to a tool implementation.

    ``previous_steps`` and ``memory`` are read-only views of the calling
    run; tools must not mutate them.
    """

    session_id: str
    agent_name: str = ""
    agent_context: Mapping[str, Any] = field(default_factory=dict)
    previous_steps: Sequence[ReasoningStep] = ()
    memory: MemoryManager | None = None


# ===================================================================== #
#  Results and options                                                   #
# ===================================================================== #

@dataclass(frozen=True)
class ToolResult:
    """What a tool call produced."""

    success: bool
    data: Any = None
    error: str | None = None
    error_code: ToolErrorCode | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None, **metadata: Any) -> ToolResult:
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(
        cls,
        error: str,
        error_code: ToolErrorCode = ToolErrorCode.TOOL_REPORTED,
        **metadata: Any,
    ) -> ToolResult:
        return cls(success=False, error=error, error_code=error_code, metadata=metadata)


@dataclass(frozen=True)
class TimedToolResult(ToolResult):
    """A ``ToolResult`` as returned by the registry, with timing and cache info."""

    execution_time_ms: float = 0.0
    from_cache: bool = False


@dataclass(frozen=True)
class ToolExecutionOptions:
    """Per-call execution policy.

    Concurrent identical calls share one execution only when their options
    are equal as well.

    Attributes
    ----------
    timeout_ms:
        Budget of a single attempt.
    retries:
        Total attempts (1 means no retry).
    retry_backoff_ms:
        Linear backoff unit: attempt *n* waits ``n * retry_backoff_ms``.
    cache_enabled:
        Read from and write to the registry cache.
    cache_ttl_ms:
        TTL of a written entry; ``None`` uses the cache default.
    """

    timeout_ms: int = 30_000
    retries: int = 1
    retry_backoff_ms: int = 1_000
    cache_enabled: bool = True
    cache_ttl_ms: int | None = None


# ===================================================================== #
#  Type checks                                                           #
# ===================================================================== #

def matches_type(value: Any, param_type: ParamType) -> bool:
    """Return ``True`` if *value* conforms to *param_type*."""
    if param_type is ParamType.STRING:
        return isinstance(value, str)
    if param_type is ParamType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if param_type is ParamType.BOOLEAN:
        return isinstance(value, bool)
    if param_type is ParamType.OBJECT:
        return isinstance(value, Mapping)
    if param_type is ParamType.ARRAY:
        return isinstance(value, (list, tuple))
    return False


def definition_issues(definition: ToolDefinition) -> list[str]:
    """Return every inconsistency in *definition* (empty when valid)."""
    issues: list[str] = []
    if not definition.name or not definition.name.strip():
        issues.append("tool name must not be empty")
    if not callable(definition.execute):
        issues.append("execute must be callable")

    seen: set[str] = set()
    for param in definition.parameters:
        if not param.name:
            issues.append("parameter name must not be empty")
            continue
        if param.name in seen:
            issues.append(f"duplicate parameter '{param.name}'")
        seen.add(param.name)

        if param.enum and param.type is not ParamType.STRING:
            issues.append(
                f"parameter '{param.name}' declares enum values but has type "
                f"'{param.type.value}'"
            )
        if param.default is not None:
            if not matches_type(param.default, param.type):
                issues.append(
                    f"default of parameter '{param.name}' does not match type "
                    f"'{param.type.value}'"
                )
            elif param.enum and param.default not in param.enum:
                issues.append(
                    f"default of parameter '{param.name}' is not one of {list(param.enum)}"
                )
    return issues
