"""Tool definition types.

A tool is a name, a description shown to the model, a JSON schema for its
arguments and a handler. Handlers take the decoded argument mapping and
return a plain value (``None``, ``str``, numbers, ``bool``, mappings,
sequences) or an awaitable resolving to one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Union

__all__ = [
    "ToolResultValue",
    "ToolHandler",
    "ArgumentDecoder",
    "ToolDefinition",
    "DEFAULT_TOOL_PARAMETERS",
    "missing_required_properties",
]


ToolResultValue = Union[None, str, int, float, bool, Mapping[str, Any], list, tuple]

# Sync handlers return the value directly; async handlers return an awaitable.
ToolHandler = Callable[[Mapping[str, Any]], Union[Any, Awaitable[Any]]]

# Validates/coerces decoded arguments; raises ValueError or TypeError to reject.
ArgumentDecoder = Callable[[Mapping[str, Any]], Mapping[str, Any]]

DEFAULT_TOOL_PARAMETERS: Mapping[str, Any] = {
    "type": "object",
    "properties": {},
    "additionalProperties": False,
}


@dataclass(slots=True, frozen=True)
class ToolDefinition:
    """A host-defined tool the backend may ask to invoke.

    Attributes:
        name: Unique identifier for the tool.
        description: Human-readable description sent to the backend.
        handler: Callable receiving the decoded argument mapping.
        parameters: JSON Schema for the arguments; ``None`` means no arguments.
        strict: Whether the backend should enforce the schema strictly.
        argument_decoder: Optional per-tool validation of decoded arguments.
    """

    name: str
    description: str
    handler: ToolHandler
    parameters: Mapping[str, Any] | None = None
    strict: bool = True
    argument_decoder: ArgumentDecoder | None = None

    def to_function_tool(self) -> dict[str, Any]:
        """Convert to the Responses API function tool format."""
        parameters = self.parameters if self.parameters is not None else DEFAULT_TOOL_PARAMETERS
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": dict(parameters),
            "strict": self.strict,
        }


def missing_required_properties(schema: Mapping[str, Any] | None) -> list[str]:
    """Return top-level properties a strict schema declares but does not require.

    Strict function schemas must list every property under ``required`` and
    express optional values through nullable types instead.
    """
    if not schema:
        return []
    properties = schema.get("properties")
    if not isinstance(properties, Mapping):
        return []
    required = schema.get("required") or ()
    return [name for name in properties if name not in required]
