"""Infrastructure layer for the ReAct engine.

Re-exports the public API surface for convenience::

    from react_engine.infrastructure import (
        AsyncEventBus, EventStore, ToolResultCache,
        ReActConfig, CacheConfig, load_config_from_json,
        LLMClient, ChatModelClient, Completion, ModelPricing,
    )
"""

from react_engine.infrastructure.cache import CacheStats, ToolResultCache
from react_engine.infrastructure.config import (
    CacheConfig,
    ReActConfig,
    load_config_from_json,
)
from react_engine.infrastructure.event_bus import AsyncEventBus, EventStore
from react_engine.infrastructure.llm import (
    ChatModelClient,
    Completion,
    LLMClient,
    LLMConnectionError,
    LLMError,
    LLMResponseError,
    ModelPricing,
)

__all__ = [
    # Event bus
    "AsyncEventBus",
    "EventStore",
    # Cache
    "ToolResultCache",
    "CacheStats",
    # Configuration
    "ReActConfig",
    "CacheConfig",
    "load_config_from_json",
    # LLM
    "LLMClient",
    "ChatModelClient",
    "Completion",
    "ModelPricing",
    "LLMError",
    "LLMConnectionError",
    "LLMResponseError",
]
