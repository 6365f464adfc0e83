"""Conversation item types shared by the turn loop.

Every item that can appear in the display log or the wire history is one of
four frozen dataclasses: :class:`Message`, :class:`ToolCall`,
:class:`ToolResult` and :class:`ReasoningItem`. Each renders itself into
the Responses API input format through ``to_wire()``.

Backend output items arrive either as ``openai`` SDK models or as plain
mappings (tests, proxies); the ``from_output_item`` constructors accept both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Union

from ..errors import ToolProtocolError

__all__ = [
    "MessageRole",
    "Message",
    "ToolCall",
    "ToolResult",
    "ReasoningItem",
    "ConversationItem",
    "AssistantResult",
    "output_field",
]


MessageRole = Literal["system", "user", "assistant"]


def output_field(item: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from an SDK model or a mapping."""
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


# -----------------------------------------------------------------------------
# Items
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Message:
    """Plain text message from the system prompt, the user or the assistant."""

    role: MessageRole
    text: str

    @classmethod
    def system(cls, text: str) -> Message:
        return cls(role="system", text=text)

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role="user", text=text)

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(role="assistant", text=text)

    def to_wire(self) -> dict[str, Any]:
        return {"type": "message", "role": self.role, "content": self.text}


@dataclass(slots=True, frozen=True)
class ToolCall:
    """A function call requested by the backend.

    Attributes:
        name: Name of the requested tool.
        call_id: Identifier the matching :class:`ToolResult` must echo.
        arguments: Raw argument payload, normally a JSON object string.
        item_id: Backend output item id, when one was supplied.
    """

    name: str
    call_id: str
    arguments: str = ""
    item_id: str | None = None

    @classmethod
    def from_output_item(cls, item: Any) -> ToolCall:
        """Build a call from a ``function_call`` output item.

        Raises:
            ToolProtocolError: If the item carries neither ``call_id`` nor ``id``.
        """
        name = str(output_field(item, "name") or "")
        item_id = output_field(item, "id")
        call_id = output_field(item, "call_id") or item_id
        if not call_id:
            raise ToolProtocolError(f'Tool call "{name}" did not include a call id.')
        arguments = output_field(item, "arguments")
        return cls(
            name=name,
            call_id=str(call_id),
            arguments=arguments if isinstance(arguments, str) else "",
            item_id=str(item_id) if item_id else None,
        )

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": "function_call",
            "call_id": self.call_id,
            "name": self.name,
            "arguments": self.arguments,
        }
        if self.item_id:
            payload["id"] = self.item_id
        return payload


@dataclass(slots=True, frozen=True)
class ToolResult:
    """Serialized output of one tool call."""

    call_id: str
    output: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": "function_call_output",
            "call_id": self.call_id,
            "output": self.output,
        }


@dataclass(slots=True, frozen=True)
class ReasoningItem:
    """Opaque reasoning trace emitted by some backends.

    The payload is kept verbatim so it can be echoed back to the backend
    unchanged when the same response also requested a tool.
    """

    payload: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_output_item(cls, item: Any) -> ReasoningItem:
        if isinstance(item, Mapping):
            return cls(payload=dict(item))
        dump = getattr(item, "model_dump", None)
        if callable(dump):
            return cls(payload=dump(mode="json", exclude_none=True))
        return cls(payload=dict(vars(item)))

    @property
    def item_id(self) -> str | None:
        value = self.payload.get("id")
        return str(value) if value else None

    def to_wire(self) -> dict[str, Any]:
        payload = dict(self.payload)
        payload.setdefault("type", "reasoning")
        return payload


ConversationItem = Union[Message, ToolCall, ToolResult, ReasoningItem]


# -----------------------------------------------------------------------------
# Turn result
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class AssistantResult:
    """Final reply of a successful turn.

    Attributes:
        text: Trimmed assistant text.
        response: The raw backend response that ended the turn.
    """

    text: str
    response: Any
