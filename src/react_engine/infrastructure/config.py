"""Configuration dataclasses for the ReAct engine.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid combinations.  Configs are **frozen** so a run can
hold on to its config without risking silent mutation by the caller.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from typing import Any

MODEL_COMPLEXITIES = ("simple", "medium", "complex", "critical")


# ===================================================================== #
#  Engine Configuration                                                  #
# ===================================================================== #

@dataclass(frozen=True)
class ReActConfig:
    """Parameters governing one ReAct engine run.

    Attributes
    ----------
    max_iterations:
        Hard upper limit on loop iterations (the planning step excluded).
    min_iterations:
        Iterations that must run before any stop condition is honored.
    confidence_threshold:
        Confidence (0-100) the model is asked to reach before synthesizing.
    early_stop_confidence:
        Step confidence at or above which the loop stops early.
    total_timeout_ms:
        Wall-clock budget for the whole run.
    tool_timeout_ms:
        Per-attempt timeout for a single tool call.
    tool_retries:
        Attempts per tool call (1 means no retry).
    enable_validation:
        Validate every step response against the step schema.
    max_validation_retries:
        Extra model calls allowed when a step response fails to parse or
        validate.
    enable_self_critique:
        Run the self-critique / improvement cycle after synthesis.
    self_critique_threshold:
        Only critique when synthesis confidence is below this value.
    max_critique_iterations:
        Upper bound on critique passes per run.
    critique_adjustment_limit:
        Symmetric clamp applied to the critique's confidence adjustment.
    temperature:
        Sampling temperature for step and improvement calls.
    model_complexity:
        Model tier for step, improvement and synthesis calls.
    """

    max_iterations: int = 5
    min_iterations: int = 2
    confidence_threshold: float = 80.0
    early_stop_confidence: float = 90.0
    total_timeout_ms: int = 120_000
    tool_timeout_ms: int = 30_000
    tool_retries: int = 1
    enable_validation: bool = True
    max_validation_retries: int = 2
    enable_self_critique: bool = True
    self_critique_threshold: float = 75.0
    max_critique_iterations: int = 2
    critique_adjustment_limit: float = 10.0
    temperature: float = 0.3
    model_complexity: str = "complex"

    def validate(self) -> None:
        """Raise ``ValueError`` if any field is out of valid range."""
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.min_iterations < 0:
            raise ValueError(f"min_iterations must be >= 0, got {self.min_iterations}")
        if self.min_iterations > self.max_iterations:
            raise ValueError(
                f"min_iterations ({self.min_iterations}) must not exceed "
                f"max_iterations ({self.max_iterations})"
            )
        for name in ("confidence_threshold", "early_stop_confidence", "self_critique_threshold"):
            value = getattr(self, name)
            if not (0.0 <= value <= 100.0):
                raise ValueError(f"{name} must be in [0, 100], got {value}")
        if self.total_timeout_ms < 1:
            raise ValueError(f"total_timeout_ms must be >= 1, got {self.total_timeout_ms}")
        if self.tool_timeout_ms < 1:
            raise ValueError(f"tool_timeout_ms must be >= 1, got {self.tool_timeout_ms}")
        if self.tool_retries < 1:
            raise ValueError(f"tool_retries must be >= 1, got {self.tool_retries}")
        if self.max_validation_retries < 0:
            raise ValueError(
                f"max_validation_retries must be >= 0, got {self.max_validation_retries}"
            )
        if self.max_critique_iterations < 0:
            raise ValueError(
                f"max_critique_iterations must be >= 0, got {self.max_critique_iterations}"
            )
        if self.critique_adjustment_limit < 0:
            raise ValueError(
                f"critique_adjustment_limit must be >= 0, got {self.critique_adjustment_limit}"
            )
        if not (0.0 <= self.temperature <= 2.0):
            raise ValueError(f"temperature must be in [0, 2], got {self.temperature}")
        if self.model_complexity not in MODEL_COMPLEXITIES:
            raise ValueError(
                f"model_complexity must be one of {list(MODEL_COMPLEXITIES)}, "
                f"got '{self.model_complexity}'"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReActConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Tool Cache Configuration                                              #
# ===================================================================== #

@dataclass(frozen=True)
class CacheConfig:
    """Parameters for the shared tool-result cache.

    Attributes
    ----------
    default_ttl_ms:
        Lifetime of an entry when the writer does not give one.
    max_entries:
        Entry count at which the least useful entry is evicted.
    """

    default_ttl_ms: int = 5 * 60 * 1000
    max_entries: int = 1000

    def validate(self) -> None:
        if self.default_ttl_ms < 1:
            raise ValueError(f"default_ttl_ms must be >= 1, got {self.default_ttl_ms}")
        if self.max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {self.max_entries}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Unified config loader                                                 #
# ===================================================================== #

_CONFIG_MAP: dict[str, type] = {
    "react": ReActConfig,
    "cache": CacheConfig,
}


def load_config_from_json(json_str: str) -> dict[str, Any]:
    """Parse a JSON string into a dict of typed config objects.

    The JSON is expected to be an object whose top-level keys correspond to
    config section names (``react``, ``cache``).  Unknown sections are
    preserved as raw values.
    """
    raw = json.loads(json_str)
    if not isinstance(raw, dict):
        raise ValueError("Top-level JSON must be an object")
    result: dict[str, Any] = {}
    for section, data in raw.items():
        cls = _CONFIG_MAP.get(section)
        if cls is not None and isinstance(data, dict):
            result[section] = cls.from_dict(data)
        else:
            result[section] = data
    return result
