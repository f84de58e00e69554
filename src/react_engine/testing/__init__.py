"""Public testing utilities for the ReAct engine.

Provides a scripted chat model and answer builders for writing
self-contained examples and tests without requiring API keys.
"""

from react_engine.testing.mock_llm import ScriptedCall, ScriptedChatModel
from react_engine.testing.scripts import (
    alternative,
    alternatives_answer,
    critique_answer,
    finding,
    plan_answer,
    scripted_run_model,
    step_answer,
    synthesis_answer,
)

__all__ = [
    "ScriptedCall",
    "ScriptedChatModel",
    "alternative",
    "alternatives_answer",
    "critique_answer",
    "finding",
    "plan_answer",
    "scripted_run_model",
    "step_answer",
    "synthesis_answer",
]
