"""Tool registry for the ReAct engine.

Tools register by name, either imperatively (``registry.register(defn)``)
or with the ``@registry.tool(...)`` decorator.  The registry validates each
declaration up front, validates every call against it, and runs the tool
with a timeout, bounded retries and a shared result cache.

Registries are constructed explicitly and injected into engines; there is
no global instance.  Several registries (or several concurrent runs on one
registry) can share a ``ToolResultCache`` so that an expensive lookup made
by one agent is served from cache to the next.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from react_engine.domain.enums import ParamType, ToolErrorCode
from react_engine.domain.exceptions import ToolDefinitionError
from react_engine.infrastructure.cache import CacheStats, ToolResultCache
from react_engine.tools.definitions import (
    TimedToolResult,
    ToolContext,
    ToolDefinition,
    ToolExecuteFn,
    ToolExecutionOptions,
    ToolParameter,
    ToolResult,
    definition_issues,
    matches_type,
)

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "tools"


def cache_key(name: str, params: Mapping[str, Any]) -> str:
    """Return the cache key of a call: ``name:`` + sorted-keys JSON."""
    return f"{name}:{json.dumps(params, sort_keys=True, default=str)}"


def session_tag(session_id: str) -> str:
    return f"session:{session_id}"


class ToolRegistry:
    """Name-keyed registry of ``ToolDefinition`` objects.

    Usage -- decorator style::

        registry = ToolRegistry()

        @registry.tool(
            "search_news",
            "Search recent news articles",
            [ToolParameter("query", ParamType.STRING, "Search terms")],
        )
        async def search_news(params, context):
            return ToolResult.ok(await fetch(params["query"]))

    Usage -- imperative style::

        registry.register(ToolDefinition(name=..., description=..., ...))

    Parameters
    ----------
    cache:
        Result cache to use.  Pass the same instance to several registries
        to share results across them.
    """

    def __init__(self, cache: ToolResultCache | None = None) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._cache = cache if cache is not None else ToolResultCache()
        self._in_flight: dict[tuple[str, ToolExecutionOptions], asyncio.Task[TimedToolResult]] = {}

    @property
    def cache(self) -> ToolResultCache:
        return self._cache

    # ------------------------------------------------------------------ #
    #  Registration                                                       #
    # ------------------------------------------------------------------ #

    def register(self, definition: ToolDefinition) -> None:
        """Register *definition*, replacing any tool of the same name.

        Raises
        ------
        ToolDefinitionError
            If the declaration is inconsistent.
        """
        issues = definition_issues(definition)
        if issues:
            raise ToolDefinitionError(
                f"Invalid definition for tool '{definition.name}': {'; '.join(issues)}",
                tool_name=definition.name,
                issues=issues,
            )
        if definition.name in self._tools:
            logger.warning("Tool '%s' is being re-registered", definition.name)
        self._tools[definition.name] = definition

    def tool(
        self,
        name: str,
        description: str,
        parameters: Sequence[ToolParameter] = (),
    ) -> Callable[[ToolExecuteFn], ToolExecuteFn]:
        """Decorator that registers an async function as a tool."""

        def decorator(fn: ToolExecuteFn) -> ToolExecuteFn:
            self.register(
                ToolDefinition(
                    name=name,
                    description=description,
                    parameters=tuple(parameters),
                    execute=fn,
                )
            )
            return fn

        return decorator

    def unregister(self, name: str) -> bool:
        """Remove a tool. Returns ``True`` if it was registered."""
        return self._tools.pop(name, None) is not None

    # ------------------------------------------------------------------ #
    #  Lookup                                                              #
    # ------------------------------------------------------------------ #

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def all(self) -> list[ToolDefinition]:
        """Return every registered tool, sorted by name."""
        return [self._tools[n] for n in sorted(self._tools)]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    # ------------------------------------------------------------------ #
    #  Execution                                                           #
    # ------------------------------------------------------------------ #

    async def execute(
        self,
        name: str,
        params: Mapping[str, Any],
        context: ToolContext,
        options: ToolExecutionOptions | None = None,
    ) -> TimedToolResult:
        """Validate and run tool *name* with *params*.

        Never raises for call-level problems; see ``ToolErrorCode`` for the
        failure reasons reported in the result.
        """
        opts = options or ToolExecutionOptions()
        definition = self._tools.get(name)
        if definition is None:
            return TimedToolResult(
                success=False,
                error=f'Tool "{name}" not found',
                error_code=ToolErrorCode.UNKNOWN_TOOL,
            )

        normalized, failure = self._validate_call(definition, params)
        if failure is not None:
            return failure

        key = cache_key(name, normalized)
        if opts.cache_enabled:
            cached = self._cache.get(CACHE_NAMESPACE, key)
            if cached is not None:
                logger.debug("Tool '%s' served from cache", name)
                return TimedToolResult(
                    success=cached.success,
                    data=cached.data,
                    error=cached.error,
                    error_code=cached.error_code,
                    metadata={**cached.metadata, "cached": True},
                    execution_time_ms=0.0,
                    from_cache=True,
                )

            # Identical concurrent calls with the same options share one execution.
            flight_key = (key, opts)
            task = self._in_flight.get(flight_key)
            if task is None:
                task = asyncio.ensure_future(
                    self._run_and_cache(definition, normalized, context, opts, key)
                )
                self._in_flight[flight_key] = task
                task.add_done_callback(lambda _t, k=flight_key: self._in_flight.pop(k, None))
            else:
                logger.debug("Tool '%s' joined an in-flight call", name)
            return await asyncio.shield(task)

        return await self._run_with_retries(definition, normalized, context, opts)

    async def _run_and_cache(
        self,
        definition: ToolDefinition,
        params: dict[str, Any],
        context: ToolContext,
        opts: ToolExecutionOptions,
        key: str,
    ) -> TimedToolResult:
        result = await self._run_with_retries(definition, params, context, opts)
        if result.success:
            try:
                self._cache.set(
                    CACHE_NAMESPACE,
                    key,
                    ToolResult(
                        success=True,
                        data=result.data,
                        metadata=dict(result.metadata),
                    ),
                    ttl_ms=opts.cache_ttl_ms,
                    tags=(session_tag(context.session_id),),
                )
            except (TypeError, copy.Error) as exc:
                logger.warning(
                    "Tool '%s' result not cached (cannot snapshot it): %s",
                    definition.name, exc,
                )
        return result

    async def _run_with_retries(
        self,
        definition: ToolDefinition,
        params: dict[str, Any],
        context: ToolContext,
        opts: ToolExecutionOptions,
    ) -> TimedToolResult:
        last_error = "Tool execution failed"
        last_code = ToolErrorCode.EXECUTION_ERROR
        attempts = max(1, opts.retries)

        for attempt in range(1, attempts + 1):
            start = time.perf_counter()
            try:
                raw = await asyncio.wait_for(
                    definition.execute(dict(params), context),
                    timeout=opts.timeout_ms / 1000.0,
                )
            except asyncio.TimeoutError:
                last_error = f"Tool execution timeout after {opts.timeout_ms}ms"
                last_code = ToolErrorCode.TIMEOUT
            except Exception as exc:
                last_error = str(exc) or type(exc).__name__
                last_code = ToolErrorCode.EXECUTION_ERROR
            else:
                elapsed_ms = (time.perf_counter() - start) * 1000.0
                result = raw if isinstance(raw, ToolResult) else ToolResult.ok(raw)
                code = result.error_code
                if not result.success and code is None:
                    code = ToolErrorCode.TOOL_REPORTED
                return TimedToolResult(
                    success=result.success,
                    data=result.data,
                    error=result.error,
                    error_code=code,
                    metadata=dict(result.metadata),
                    execution_time_ms=elapsed_ms,
                    from_cache=False,
                )

            logger.warning(
                "Tool '%s' attempt %d/%d failed: %s",
                definition.name, attempt, attempts, last_error,
            )
            if attempt < attempts:
                await asyncio.sleep(opts.retry_backoff_ms * attempt / 1000.0)

        return TimedToolResult(success=False, error=last_error, error_code=last_code)

    # ------------------------------------------------------------------ #
    #  Validation                                                          #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate_call(
        definition: ToolDefinition,
        params: Mapping[str, Any],
    ) -> tuple[dict[str, Any], TimedToolResult | None]:
        """Return the parameters with defaults applied, or a failure."""
        normalized = dict(params)
        for param in definition.parameters:
            value = normalized.get(param.name)
            if value is None:
                if param.required:
                    return normalized, TimedToolResult(
                        success=False,
                        error=f"Missing required parameter: {param.name}",
                        error_code=ToolErrorCode.MISSING_PARAMETER,
                    )
                if param.default is not None:
                    normalized[param.name] = param.default
                continue

            if not matches_type(value, param.type):
                return normalized, TimedToolResult(
                    success=False,
                    error=(
                        f"Parameter {param.name} expected {param.type.value}, "
                        f"got {_json_type(value)}"
                    ),
                    error_code=ToolErrorCode.TYPE_MISMATCH,
                )
            if param.enum and value not in param.enum:
                return normalized, TimedToolResult(
                    success=False,
                    error=f"Parameter {param.name} must be one of: {', '.join(param.enum)}",
                    error_code=ToolErrorCode.INVALID_ENUM,
                )
        return normalized, None

    # ------------------------------------------------------------------ #
    #  Prompt catalog                                                      #
    # ------------------------------------------------------------------ #

    def get_tool_descriptions(self) -> str:
        """Render the tool catalog shown to the model, sorted by name."""
        tools = self.all()
        if not tools:
            return "No tools available."

        blocks: list[str] = []
        for definition in tools:
            lines = [_describe_parameter(p) for p in definition.parameters]
            params_text = "\n".join(lines) if lines else "    (none)"
            blocks.append(
                f"## {definition.name}\n{definition.description}\n\n"
                f"Parameters:\n{params_text}"
            )
        return "\n\n".join(blocks)

    # ------------------------------------------------------------------ #
    #  Cache management                                                    #
    # ------------------------------------------------------------------ #

    def clear_cache(self) -> int:
        """Drop every cached tool result. Returns the number removed."""
        return self._cache.invalidate_namespace(CACHE_NAMESPACE)

    def invalidate_cache(self, name: str, params: Mapping[str, Any]) -> bool:
        """Drop the cached result of one exact call (defaults applied)."""
        definition = self._tools.get(name)
        normalized = dict(params)
        if definition is not None:
            normalized, _ = self._validate_call(definition, params)
        return self._cache.delete(CACHE_NAMESPACE, cache_key(name, normalized))

    def invalidate_session(self, session_id: str) -> int:
        """Drop every result cached on behalf of *session_id*."""
        return self._cache.invalidate_by_tag(session_tag(session_id))

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return ParamType.BOOLEAN.value
    if isinstance(value, (int, float)):
        return ParamType.NUMBER.value
    if isinstance(value, str):
        return ParamType.STRING.value
    if isinstance(value, (list, tuple)):
        return ParamType.ARRAY.value
    if isinstance(value, Mapping):
        return ParamType.OBJECT.value
    return type(value).__name__


def _describe_parameter(param: ToolParameter) -> str:
    required = " (required)" if param.required else " (optional)"
    default = f" [default: {param.default}]" if param.default is not None else ""
    values = f" [values: {', '.join(param.enum)}]" if param.enum else ""
    return (
        f"    - {param.name}: {param.type.value}{required}{default}{values}"
        f" - {param.description}"
    )
