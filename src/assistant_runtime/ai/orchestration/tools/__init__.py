"""Tool registry, argument decoding, invocation and result serialization.

Example:
    from assistant_runtime.ai.orchestration.tools import (
        ToolDefinition,
        ToolInvoker,
        ToolRegistry,
    )
    from assistant_runtime.ai.orchestration.types import ToolCall

    registry = ToolRegistry([
        ToolDefinition(
            name="greet",
            description="Greet someone",
            handler=lambda args: f"Hello, {args.get('name', 'World')}!",
        ),
    ])
    invoker = ToolInvoker(registry)
    result = await invoker.invoke(ToolCall(name="greet", call_id="call_1", arguments='{"name": "Ada"}'))
"""

from .types import (
    DEFAULT_TOOL_PARAMETERS,
    ArgumentDecoder,
    ToolDefinition,
    ToolHandler,
    ToolResultValue,
    missing_required_properties,
)

from .registry import ToolRegistry

from .arguments import ArgumentDecodeResult, decode_tool_arguments

from .serialization import (
    DEFAULT_MAX_DEPTH,
    ToolResultSerializationError,
    format_tool_result,
    serialize_tool_result,
)

from .executor import ToolInvoker, format_error

__all__ = [
    # types.py
    "DEFAULT_TOOL_PARAMETERS",
    "ArgumentDecoder",
    "ToolDefinition",
    "ToolHandler",
    "ToolResultValue",
    "missing_required_properties",
    # registry.py
    "ToolRegistry",
    # arguments.py
    "ArgumentDecodeResult",
    "decode_tool_arguments",
    # serialization.py
    "DEFAULT_MAX_DEPTH",
    "ToolResultSerializationError",
    "format_tool_result",
    "serialize_tool_result",
    # executor.py
    "ToolInvoker",
    "format_error",
]
