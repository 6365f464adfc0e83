"""Fatal error types raised by the assistant turn loop.

Only errors that abort a whole turn live here. Problems local to a single
tool call (unknown tool, malformed arguments, a handler raising) are folded
into the tool result text instead, so the model can correct itself on the
next request. Backend failures from the ``openai`` package are re-raised
as-is and are not wrapped by any of these classes.
"""

from __future__ import annotations

__all__ = [
    "AssistantError",
    "AssistantNotConfiguredError",
    "ToolProtocolError",
    "ToolIterationLimitError",
]


class AssistantError(Exception):
    """Base class for errors raised by the assistant runtime."""


class AssistantNotConfiguredError(AssistantError):
    """Raised when ``send`` is called on a client without backend credentials."""

    def __init__(self, message: str = "Assistant backend is not configured.") -> None:
        super().__init__(message)


class ToolProtocolError(AssistantError):
    """Raised when the backend asks for a tool call the runtime cannot honour.

    This covers responses that request a tool while no tools are registered
    and function calls that arrive without any call identifier.
    """


class ToolIterationLimitError(AssistantError):
    """Raised when a turn keeps requesting tools past the configured bound."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Assistant exceeded the tool-call limit ({limit}).")
