"""Tool-augmented conversational agent runtime."""

from .ai import (
    AssistantClient,
    AssistantResult,
    AssistantSettings,
    ToolDefinition,
)

__all__ = ["AssistantClient", "AssistantResult", "AssistantSettings", "ToolDefinition"]

__version__ = "0.1.0"
