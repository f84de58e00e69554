"""Service layer for the ReAct engine.

Re-exports public service types for convenient top-level access::

    from react_engine.services import (
        ReActEngine, create_react_engine, Deadline,
        MemoryManager, InsightExtractorRegistry,
        ConfidenceCalculator, ConfidencePolicy, DefaultConfidencePolicy,
        parse_json_response, parse_model,
    )
"""

from react_engine.services.confidence import (
    ConfidenceCalculator,
    ConfidencePolicy,
    DefaultConfidencePolicy,
    RunStats,
)
from react_engine.services.engine import Deadline, ReActEngine, create_react_engine
from react_engine.services.insights import (
    InsightExtractorRegistry,
    prefixed_fields,
    selected_fields,
)
from react_engine.services.memory import MemoryManager
from react_engine.services.parsing import parse_json_response, parse_model
from react_engine.services.prompts import AgentContext, ReActPrompts

__all__ = [
    # Engine
    "ReActEngine",
    "create_react_engine",
    "Deadline",
    "AgentContext",
    "ReActPrompts",
    # Memory
    "MemoryManager",
    "InsightExtractorRegistry",
    "prefixed_fields",
    "selected_fields",
    # Confidence
    "ConfidenceCalculator",
    "ConfidencePolicy",
    "DefaultConfidencePolicy",
    "RunStats",
    # Parsing
    "parse_json_response",
    "parse_model",
]
