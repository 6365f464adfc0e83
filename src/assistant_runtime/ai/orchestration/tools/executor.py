"""Invocation of a single tool call.

The :class:`ToolInvoker` turns one :class:`ToolCall` into exactly one
:class:`ToolResult`. Unknown tools, malformed arguments and handler errors
all come back as result text for the model to read; none of them raise.
"""

from __future__ import annotations

import inspect
import logging
import time
from typing import Any

from ..types import ToolCall, ToolResult
from .arguments import decode_tool_arguments
from .registry import ToolRegistry
from .serialization import DEFAULT_MAX_DEPTH, format_tool_result

__all__ = ["ToolInvoker", "format_error"]

LOGGER = logging.getLogger(__name__)


def format_error(error: BaseException) -> str:
    """Human-readable error message, falling back to the exception type."""
    message = str(error).strip()
    return message or type(error).__name__


class ToolInvoker:
    """Resolves tool calls against a registry and runs their handlers.

    Handlers run without a timeout; a handler that never returns stalls the
    turn that invoked it.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        log_payloads: bool = False,
        max_result_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._registry = registry
        self._log_payloads = log_payloads
        self._max_result_depth = max_result_depth

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def invoke(self, call: ToolCall) -> ToolResult:
        """Run ``call`` and return its result item."""
        tool = self._registry.get(call.name)
        if tool is None:
            LOGGER.warning("Assistant requested unknown tool %s", call.name)
            return ToolResult(call.call_id, f'Tool "{call.name}" is not available.')

        decoded = decode_tool_arguments(call.arguments, tool.argument_decoder)
        if not decoded.ok:
            LOGGER.warning("Failed to parse arguments for tool %s: %s", call.name, decoded.error)
            return ToolResult(
                call.call_id,
                f'Unable to parse arguments for "{call.name}": {decoded.error}.',
            )

        if self._log_payloads:
            LOGGER.debug(
                "Executing tool %s (call_id=%s) with arguments: %s",
                call.name,
                call.call_id,
                call.arguments,
            )
        else:
            LOGGER.debug("Executing tool %s (call_id=%s)", call.name, call.call_id)

        start_time = time.perf_counter()
        try:
            result: Any = tool.handler(decoded.arguments or {})
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            LOGGER.warning("Tool %s failed after %.1fms: %s", call.name, duration_ms, exc)
            return ToolResult(call.call_id, f'Tool "{call.name}" failed: {format_error(exc)}')

        duration_ms = (time.perf_counter() - start_time) * 1000
        output = format_tool_result(result, max_depth=self._max_result_depth)
        if self._log_payloads:
            LOGGER.debug("Tool %s completed in %.1fms with result: %s", call.name, duration_ms, output)
        else:
            LOGGER.debug("Tool %s completed in %.1fms", call.name, duration_ms)
        return ToolResult(call.call_id, output)
