"""Assistant client, turn loop and tool wiring."""

from .client import AssistantClient
from .errors import (
    AssistantError,
    AssistantNotConfiguredError,
    ToolIterationLimitError,
    ToolProtocolError,
)
from .orchestration.tools import ToolDefinition
from .orchestration.types import AssistantResult
from ..services.settings import AssistantSettings

__all__ = [
    "AssistantClient",
    "AssistantResult",
    "AssistantSettings",
    "ToolDefinition",
    "AssistantError",
    "AssistantNotConfiguredError",
    "ToolIterationLimitError",
    "ToolProtocolError",
]
