"""Fixed name-to-definition mapping of the tools a client exposes."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Sequence

from .types import ToolDefinition, missing_required_properties

__all__ = ["ToolRegistry"]

LOGGER = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of tool definitions, built once at client construction.

    Names are unique keys. When the same name appears more than once in the
    constructor sequence, the later definition replaces the earlier one.

    Example:
        registry = ToolRegistry([
            ToolDefinition(
                name="find_entities",
                description="List entities in the open scene",
                handler=lambda args: {"totalEntities": 3},
            ),
        ])
        registry.function_tools()  # -> [{"type": "function", "name": "find_entities", ...}]
    """

    def __init__(self, definitions: Sequence[ToolDefinition] | None = None) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        for definition in definitions or ():
            if definition.name in self._tools:
                LOGGER.debug("Tool %s redefined; later definition wins", definition.name)
            if definition.strict:
                optional = missing_required_properties(definition.parameters)
                if optional:
                    LOGGER.warning(
                        "Strict tool %s does not list %s as required; the backend may reject its schema",
                        definition.name,
                        ", ".join(optional),
                    )
            self._tools[definition.name] = definition
        self._function_tools = [tool.to_function_tool() for tool in self._tools.values()]
        LOGGER.debug("Registered %d tool(s)", len(self._tools))

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def function_tools(self) -> list[dict[str, Any]]:
        """Tool definitions in the backend's function schema format.

        Empty when no tools are registered.
        """
        return [dict(tool) for tool in self._function_tools]

    def __len__(self) -> int:
        return len(self._tools)

    def __bool__(self) -> bool:
        return bool(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(list(self._tools.values()))
