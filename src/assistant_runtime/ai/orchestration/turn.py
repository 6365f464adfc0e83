"""Turn driver: the backend/tool loop as an explicit state machine.

::

    AWAITING_BACKEND --(no tool calls)--> FINISHED
    AWAITING_BACKEND --(tool calls)-----> AWAITING_TOOLS
    AWAITING_TOOLS   --(results in)-----> AWAITING_BACKEND

Each :meth:`TurnDriver.step` performs exactly one transition, which keeps
the iteration counter and the points where the store changes easy to test
without a network. Rolling back a failed turn is the caller's job (see
:mod:`.rollback`); the driver only appends.
"""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Awaitable, Callable, Protocol, Sequence

from ..errors import ToolIterationLimitError, ToolProtocolError
from .conversation import ConversationStore
from .tools.executor import ToolInvoker
from .types import AssistantResult, Message, ReasoningItem, ToolCall, ToolResult, output_field

__all__ = [
    "TurnState",
    "TurnDriver",
    "ResponseArtifacts",
    "ResponsesBackend",
    "ToolStartCallback",
    "ToolResultCallback",
    "collect_response_artifacts",
    "extract_response_text",
]

LOGGER = logging.getLogger(__name__)

ToolStartCallback = Callable[[ToolCall], Awaitable[None] | None]
ToolResultCallback = Callable[[ToolCall, ToolResult], Awaitable[None] | None]


class ResponsesBackend(Protocol):
    """Anything exposing ``responses.create`` like ``openai.AsyncOpenAI``."""

    responses: Any


class TurnState(Enum):
    """Position of a turn in the backend/tool loop."""

    AWAITING_BACKEND = auto()
    AWAITING_TOOLS = auto()
    FINISHED = auto()


# -----------------------------------------------------------------------------
# Response parsing
# -----------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class ResponseArtifacts:
    """Reasoning items and tool calls found in one backend response."""

    reasoning_items: tuple[ReasoningItem, ...] = ()
    tool_calls: tuple[ToolCall, ...] = ()


def collect_response_artifacts(response: Any) -> ResponseArtifacts:
    """Split a response's output items into reasoning items and tool calls."""
    reasoning: list[ReasoningItem] = []
    calls: list[ToolCall] = []
    output = output_field(response, "output")
    if isinstance(output, Sequence) and not isinstance(output, (str, bytes)):
        for item in output:
            item_type = output_field(item, "type")
            if item_type == "reasoning":
                reasoning.append(ReasoningItem.from_output_item(item))
            elif item_type == "function_call":
                calls.append(ToolCall.from_output_item(item))
    return ResponseArtifacts(reasoning_items=tuple(reasoning), tool_calls=tuple(calls))


def extract_response_text(response: Any) -> str:
    """Final assistant text of a response, trimmed.

    Prefers the ``output_text`` convenience field and falls back to joining
    the ``output_text`` segments of every ``message`` item.
    """
    output_text = output_field(response, "output_text")
    if isinstance(output_text, str) and output_text:
        return output_text.strip()

    segments: list[str] = []
    output = output_field(response, "output")
    if isinstance(output, Sequence) and not isinstance(output, (str, bytes)):
        for item in output:
            if output_field(item, "type") != "message":
                continue
            for content in output_field(item, "content") or ():
                text = output_field(content, "text")
                if output_field(content, "type") == "output_text" and isinstance(text, str):
                    segments.append(text)
    return "".join(segments).strip()


# -----------------------------------------------------------------------------
# Driver
# -----------------------------------------------------------------------------


class TurnDriver:
    """Runs one turn against the backend, appending to ``store`` as it goes.

    The user message must already be in the store when the driver starts.
    Tool calls from one response run one at a time in the order received,
    even when ``parallel_tool_calls`` is advertised to the backend.
    """

    def __init__(
        self,
        backend: ResponsesBackend,
        store: ConversationStore,
        invoker: ToolInvoker,
        *,
        model: str,
        max_tool_iterations: int,
        parallel_tool_calls: bool = False,
        log_payloads: bool = False,
        on_tool_start: ToolStartCallback | None = None,
        on_tool_result: ToolResultCallback | None = None,
    ) -> None:
        self._backend = backend
        self._store = store
        self._invoker = invoker
        self._model = model
        self._max_tool_iterations = max_tool_iterations
        self._parallel_tool_calls = parallel_tool_calls
        self._log_payloads = log_payloads
        self._on_tool_start = on_tool_start
        self._on_tool_result = on_tool_result
        self._function_tools = invoker.registry.function_tools()
        self._pending_calls: tuple[ToolCall, ...] = ()
        self._result: AssistantResult | None = None
        self.state = TurnState.AWAITING_BACKEND
        self.iteration = 0
        self.request_count = 0

    @property
    def result(self) -> AssistantResult | None:
        return self._result

    def build_request(self) -> dict[str, Any]:
        """Request payload for the current wire history."""
        payload: dict[str, Any] = {
            "model": self._model,
            "input": self._store.wire.to_wire(),
        }
        if self._function_tools:
            payload["tools"] = [dict(tool) for tool in self._function_tools]
            payload["parallel_tool_calls"] = self._parallel_tool_calls
        return payload

    async def run(self) -> AssistantResult:
        """Step until the turn finishes and return its result."""
        while self.state is not TurnState.FINISHED:
            await self.step()
        assert self._result is not None
        return self._result

    async def step(self) -> TurnState:
        """Perform one state transition and return the new state."""
        if self.state is TurnState.AWAITING_BACKEND:
            self.state = await self._request_backend()
        elif self.state is TurnState.AWAITING_TOOLS:
            self.state = await self._run_tools()
        else:
            raise RuntimeError("Turn already finished")
        return self.state

    async def _request_backend(self) -> TurnState:
        payload = self.build_request()
        self.request_count += 1
        LOGGER.debug(
            "Requesting %s with %d input item(s) (request %d)",
            self._model,
            len(payload["input"]),
            self.request_count,
        )
        if self._log_payloads:
            self._log_request_payload(payload)

        response = await self._backend.responses.create(**payload)
        artifacts = collect_response_artifacts(response)

        for reasoning in artifacts.reasoning_items:
            if artifacts.tool_calls:
                self._store.append(reasoning)
            else:
                self._store.append_display(reasoning)

        if not artifacts.tool_calls:
            text = extract_response_text(response)
            self._store.append(Message.assistant(text))
            self._result = AssistantResult(text=text, response=response)
            LOGGER.debug("Turn finished after %d request(s)", self.request_count)
            return TurnState.FINISHED

        if not self._function_tools:
            LOGGER.warning("Backend requested %d tool call(s) but no tools are registered", len(artifacts.tool_calls))
            raise ToolProtocolError("Assistant requested a tool, but none are registered.")

        if self.iteration >= self._max_tool_iterations:
            LOGGER.warning("Turn hit the tool iteration limit (%d)", self._max_tool_iterations)
            raise ToolIterationLimitError(self._max_tool_iterations)
        self.iteration += 1
        self._pending_calls = artifacts.tool_calls
        return TurnState.AWAITING_TOOLS

    async def _run_tools(self) -> TurnState:
        calls, self._pending_calls = self._pending_calls, ()
        for call in calls:
            self._store.append(call)
            await self._notify(self._on_tool_start, call)
            result = await self._invoker.invoke(call)
            self._store.append(result)
            await self._notify(self._on_tool_result, call, result)
        return TurnState.AWAITING_BACKEND

    @staticmethod
    async def _notify(callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        outcome = callback(*args)
        if inspect.isawaitable(outcome):
            await outcome

    def _log_request_payload(self, payload: dict[str, Any]) -> None:
        try:
            serialized = json.dumps(payload, ensure_ascii=False, indent=2)
        except (TypeError, ValueError):
            LOGGER.debug("Assistant request payload (unserializable): %s", payload)
        else:
            LOGGER.debug("Assistant request payload:\n%s", serialized)
