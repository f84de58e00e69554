"""ReAct engine.

Reasoning-Action-Observation execution engine for LLM-backed agents:
plan, call tools, observe, remember and backtrack, then synthesize a
validated structured result and critique it.

Typical use::

    from react_engine import (
        AgentContext, ChatModelClient, ReActPrompts, ToolRegistry,
        create_react_engine,
    )

    engine = create_react_engine(prompts, MyOutput, registry, ChatModelClient(model))
    output = await engine.run(AgentContext(session_id="deal-42"), "financial-auditor")
"""

__version__ = "0.1.0"

from react_engine.infrastructure.config import CacheConfig, ReActConfig
from react_engine.infrastructure.llm import ChatModelClient, LLMClient
from react_engine.services.engine import ReActEngine, create_react_engine
from react_engine.services.prompts import AgentContext, ReActPrompts
from react_engine.tools.registry import ToolRegistry

__all__ = [
    "AgentContext",
    "CacheConfig",
    "ChatModelClient",
    "LLMClient",
    "ReActConfig",
    "ReActEngine",
    "ReActPrompts",
    "ToolRegistry",
    "create_react_engine",
]
