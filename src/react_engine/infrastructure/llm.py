"""LLM completion boundary for the ReAct engine.

The engine only ever sees an ``LLMClient``: an opaque async completion
function that takes a prompt, a model-complexity tier, a temperature and a
system prompt, and returns text plus the cost of the call.

``ChatModelClient`` is the stock implementation.  It adapts one LangChain
``BaseChatModel`` per complexity tier, so any provider with a LangChain
integration (Anthropic, OpenAI, HuggingFace, local models) can back the
engine without the engine knowing which one it is.

Public API
----------
LLMClient
    Abstract completion client.
ChatModelClient
    LangChain-backed client.
Completion
    Text, cost and model name of a single completion.
ModelPricing
    Per-1k-token prices used when the provider does not report a cost.
LLMError
    Base exception for all LLM-related failures.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from react_engine.domain.exceptions import ReActError

logger = logging.getLogger(__name__)

DEFAULT_TIER = "default"


# =========================================================================== #
#  Exceptions                                                                  #
# =========================================================================== #

class LLMError(ReActError):
    """Base exception for LLM client errors."""


class LLMConnectionError(LLMError):
    """Raised when the provider cannot be reached or fails the call."""


class LLMResponseError(LLMError):
    """Raised when the provider returns an unusable response."""


# =========================================================================== #
#  Data structures                                                             #
# =========================================================================== #

@dataclass(frozen=True)
class Completion:
    """Result of one completion call.

    Attributes
    ----------
    content:
        The generated text.
    cost:
        Monetary cost of the call (provider currency units).
    model:
        Name of the model that produced the text, when known.
    """

    content: str
    cost: float = 0.0
    model: str = ""


@dataclass(frozen=True)
class ModelPricing:
    """Token prices for one model tier, per 1 000 tokens."""

    input_per_1k: float = 0.0
    output_per_1k: float = 0.0

    def cost(self, input_tokens: int, output_tokens: int) -> float:
        return (
            input_tokens / 1000.0 * self.input_per_1k
            + output_tokens / 1000.0 * self.output_per_1k
        )


# =========================================================================== #
#  Abstract client                                                             #
# =========================================================================== #

class LLMClient(ABC):
    """Abstract async completion client.

    Usage::

        client = ChatModelClient(ChatAnthropic(model="..."))
        completion = await client.complete(
            "Summarize the evidence",
            complexity="medium",
            temperature=0.2,
            system_prompt="You are a careful analyst.",
        )
    """

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        *,
        complexity: str = "medium",
        temperature: float = 0.3,
        system_prompt: str = "",
    ) -> Completion:
        """Return the model's completion of *prompt*.

        Raises
        ------
        LLMError
            If the call fails or yields no usable text.
        """


# =========================================================================== #
#  LangChain-backed client                                                     #
# =========================================================================== #

class ChatModelClient(LLMClient):
    """``LLMClient`` over LangChain chat models, one per complexity tier.

    Parameters
    ----------
    models:
        Either a single ``BaseChatModel`` (used for every tier) or a mapping
        from tier name (``simple``, ``medium``, ``complex``, ``critical``) to
        model.  A ``"default"`` entry serves tiers that are not mapped.
    pricing:
        Optional per-tier ``ModelPricing`` (``"default"`` as fallback) used
        to derive cost from token usage when the provider does not report
        ``response_metadata["cost"]``.
    """

    def __init__(
        self,
        models: BaseChatModel | Mapping[str, BaseChatModel],
        pricing: Mapping[str, ModelPricing] | None = None,
    ) -> None:
        if isinstance(models, BaseChatModel):
            self._models: dict[str, BaseChatModel] = {DEFAULT_TIER: models}
        else:
            self._models = dict(models)
        if not self._models:
            raise ValueError("ChatModelClient needs at least one chat model")
        self._pricing: dict[str, ModelPricing] = dict(pricing or {})

    def model_for(self, complexity: str) -> BaseChatModel:
        """Return the chat model serving *complexity*."""
        model = self._models.get(complexity) or self._models.get(DEFAULT_TIER)
        if model is None:
            raise LLMError(
                f"No chat model registered for complexity '{complexity}' "
                f"and no '{DEFAULT_TIER}' model",
                details={"complexity": complexity, "tiers": sorted(self._models)},
            )
        return model

    async def complete(
        self,
        prompt: str,
        *,
        complexity: str = "medium",
        temperature: float = 0.3,
        system_prompt: str = "",
    ) -> Completion:
        model = self.model_for(complexity)
        messages: list[BaseMessage] = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))

        try:
            response = await model.bind(temperature=temperature).ainvoke(messages)
        except LLMError:
            raise
        except Exception as exc:
            raise LLMConnectionError(
                f"Chat model call failed: {exc}",
                details={"complexity": complexity},
            ) from exc

        content = _text_content(response.content)
        cost = self._cost_of(response, complexity)
        model_name = str(
            getattr(response, "response_metadata", {}).get("model_name", "")
            or getattr(model, "model_name", "")
            or getattr(model, "_llm_type", "")
        )
        logger.debug(
            "ChatModelClient: tier=%s temp=%.2f chars=%d cost=%.6f",
            complexity, temperature, len(content), cost,
        )
        return Completion(content=content, cost=cost, model=model_name)

    def _cost_of(self, response: Any, complexity: str) -> float:
        metadata = getattr(response, "response_metadata", None) or {}
        reported = metadata.get("cost")
        if isinstance(reported, (int, float)):
            return float(reported)

        usage = getattr(response, "usage_metadata", None) or {}
        pricing = self._pricing.get(complexity) or self._pricing.get(DEFAULT_TIER)
        if pricing is None or not usage:
            return 0.0
        return pricing.cost(
            int(usage.get("input_tokens", 0)),
            int(usage.get("output_tokens", 0)),
        )


def _text_content(content: Any) -> str:
    """Flatten LangChain message content into plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        if parts:
            return "".join(parts)
    raise LLMResponseError(
        "Chat model returned no text content",
        details={"content_type": type(content).__name__},
    )
