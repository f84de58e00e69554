"""Presentation layer for the ReAct engine.

Export utilities turning engine outputs and traces into JSON.
"""

from react_engine.presentation.export import (
    export_json,
    output_to_dict,
    output_to_json,
    trace_to_dict,
)

__all__ = ["export_json", "output_to_dict", "output_to_json", "trace_to_dict"]
