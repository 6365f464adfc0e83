"""Tests for the turn driver state machine."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from assistant_runtime.ai.errors import ToolIterationLimitError, ToolProtocolError
from assistant_runtime.ai.orchestration.conversation import ConversationStore
from assistant_runtime.ai.orchestration.tools import ToolDefinition, ToolInvoker, ToolRegistry
from assistant_runtime.ai.orchestration.turn import (
    TurnDriver,
    TurnState,
    collect_response_artifacts,
    extract_response_text,
)
from assistant_runtime.ai.orchestration.types import (
    Message,
    ReasoningItem,
    ToolCall,
    ToolResult,
)

from helpers import (
    FakeBackend,
    function_call_item,
    make_response,
    message_item,
    reasoning_item,
    text_response,
    tool_response,
)


def _registry(*names: str) -> ToolRegistry:
    return ToolRegistry(
        [
            ToolDefinition(name=name, description=name, handler=lambda args, _n=name: f"{_n} ok")
            for name in names
        ]
    )


def _driver(
    script: list[Any],
    *,
    tools: ToolRegistry | None = None,
    max_tool_iterations: int = 60,
    instructions: str | None = None,
    **kwargs: Any,
) -> tuple[TurnDriver, FakeBackend, ConversationStore]:
    backend = FakeBackend(script)
    store = ConversationStore(instructions)
    store.append(Message.user("hello"))
    driver = TurnDriver(
        backend,
        store,
        ToolInvoker(tools if tools is not None else _registry("find_entities")),
        model="gpt-test",
        max_tool_iterations=max_tool_iterations,
        **kwargs,
    )
    return driver, backend, store


# -----------------------------------------------------------------------------
# Response parsing
# -----------------------------------------------------------------------------


def test_extract_text_prefers_output_text() -> None:
    response = make_response(message_item("ignored"), output_text="  Preferred \n")

    assert extract_response_text(response) == "Preferred"


def test_extract_text_joins_message_segments() -> None:
    message = SimpleNamespace(
        type="message",
        content=[
            SimpleNamespace(type="output_text", text=" Hello"),
            SimpleNamespace(type="refusal", refusal="no"),
            SimpleNamespace(type="output_text", text=" world "),
        ],
    )
    response = make_response(reasoning_item(), message)

    assert extract_response_text(response) == "Hello world"


def test_extract_text_accepts_mappings_and_empty_output() -> None:
    response = {
        "output": [{"type": "message", "content": [{"type": "output_text", "text": "hi"}]}],
    }

    assert extract_response_text(response) == "hi"
    assert extract_response_text(make_response()) == ""


def test_collect_artifacts_splits_reasoning_and_calls() -> None:
    response = tool_response(
        function_call_item("a", call_id="c1", item_id="fc_1"),
        function_call_item("b", arguments='{"x": 1}', call_id="c2"),
        reasoning=[reasoning_item("rs_9")],
    )

    artifacts = collect_response_artifacts(response)

    assert artifacts.reasoning_items == (ReasoningItem({"type": "reasoning", "id": "rs_9", "summary": []}),)
    assert artifacts.tool_calls == (
        ToolCall(name="a", call_id="c1", arguments="{}", item_id="fc_1"),
        ToolCall(name="b", call_id="c2", arguments='{"x": 1}'),
    )


def test_call_without_call_id_falls_back_to_item_id() -> None:
    response = tool_response(function_call_item("a", call_id=None, item_id="fc_7"))

    (call,) = collect_response_artifacts(response).tool_calls

    assert call.call_id == "fc_7"


def test_call_without_any_id_is_a_protocol_error() -> None:
    response = tool_response(function_call_item("a", call_id=None))

    with pytest.raises(ToolProtocolError, match='"a" did not include a call id'):
        collect_response_artifacts(response)


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


def test_request_payload_with_tools() -> None:
    driver, _, _ = _driver([text_response("hi")], instructions="rules", parallel_tool_calls=True)

    payload = driver.build_request()

    assert payload["model"] == "gpt-test"
    assert payload["input"] == [
        {"type": "message", "role": "system", "content": "rules"},
        {"type": "message", "role": "user", "content": "hello"},
    ]
    assert [tool["name"] for tool in payload["tools"]] == ["find_entities"]
    assert payload["parallel_tool_calls"] is True


def test_request_payload_without_tools_omits_tool_fields() -> None:
    driver, _, _ = _driver([text_response("hi")], tools=ToolRegistry())

    payload = driver.build_request()

    assert "tools" not in payload
    assert "parallel_tool_calls" not in payload


# -----------------------------------------------------------------------------
# Stepping
# -----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_plain_reply_finishes_in_one_step() -> None:
    driver, backend, store = _driver([text_response(" Done. ")])

    state = await driver.step()

    assert state is TurnState.FINISHED
    assert driver.result is not None
    assert driver.result.text == "Done."
    assert store.wire.items()[-1] == Message.assistant("Done.")
    assert len(backend.calls) == 1
    with pytest.raises(RuntimeError):
        await driver.step()


@pytest.mark.asyncio
async def test_tool_round_steps_through_each_state() -> None:
    driver, backend, store = _driver(
        [
            tool_response(function_call_item("find_entities", call_id="call_1")),
            text_response("There are 3 entities."),
        ]
    )

    assert await driver.step() is TurnState.AWAITING_TOOLS
    assert driver.iteration == 1
    assert len(store.wire) == 1

    assert await driver.step() is TurnState.AWAITING_BACKEND
    assert store.wire.items()[1:] == (
        ToolCall(name="find_entities", call_id="call_1", arguments="{}"),
        ToolResult(call_id="call_1", output="find_entities ok"),
    )

    assert await driver.step() is TurnState.FINISHED
    assert driver.request_count == 2
    second_input = backend.calls[1]["input"]
    assert second_input[-2:] == [
        {"type": "function_call", "call_id": "call_1", "name": "find_entities", "arguments": "{}"},
        {"type": "function_call_output", "call_id": "call_1", "output": "find_entities ok"},
    ]


@pytest.mark.asyncio
async def test_multiple_calls_run_in_order_and_pair_results() -> None:
    order: list[str] = []

    def handler(name: str) -> Any:
        def run(args: Any) -> str:
            order.append(name)
            return name.upper()

        return run

    registry = ToolRegistry(
        [ToolDefinition(name=name, description=name, handler=handler(name)) for name in ("a", "b")]
    )
    driver, _, store = _driver(
        [
            tool_response(
                function_call_item("b", call_id="c1"),
                function_call_item("a", call_id="c2"),
            ),
            text_response("ok"),
        ],
        tools=registry,
    )

    await driver.run()

    assert order == ["b", "a"]
    wire = store.wire.items()
    assert wire[1:5] == (
        ToolCall(name="b", call_id="c1", arguments="{}"),
        ToolResult(call_id="c1", output="B"),
        ToolCall(name="a", call_id="c2", arguments="{}"),
        ToolResult(call_id="c2", output="A"),
    )


@pytest.mark.asyncio
async def test_reasoning_kept_on_wire_only_alongside_tool_calls() -> None:
    driver, _, store = _driver(
        [
            tool_response(function_call_item("find_entities"), reasoning=[reasoning_item("rs_1")]),
            make_response(reasoning_item("rs_2"), message_item("done")),
        ]
    )

    await driver.run()

    display_ids = [item.item_id for item in store.display if isinstance(item, ReasoningItem)]
    wire_ids = [item.item_id for item in store.wire if isinstance(item, ReasoningItem)]
    assert display_ids == ["rs_1", "rs_2"]
    assert wire_ids == ["rs_1"]
    assert len(store.display) == len(store.wire) + 1


@pytest.mark.asyncio
async def test_unknown_tool_is_reported_and_loop_continues() -> None:
    driver, backend, store = _driver(
        [
            tool_response(function_call_item("delete_everything", call_id="c9")),
            text_response("Sorry, I cannot do that."),
        ]
    )

    result = await driver.run()

    assert result.text == "Sorry, I cannot do that."
    assert ToolResult("c9", 'Tool "delete_everything" is not available.') in store.wire.items()
    assert len(backend.calls) == 2


@pytest.mark.asyncio
async def test_tool_request_without_registered_tools_fails() -> None:
    driver, _, _ = _driver(
        [tool_response(function_call_item("find_entities"))],
        tools=ToolRegistry(),
        max_tool_iterations=0,
    )

    with pytest.raises(ToolProtocolError, match="none are registered"):
        await driver.run()


# -----------------------------------------------------------------------------
# Iteration bound
# -----------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 1, 3])
async def test_iteration_limit_fails_on_request_after_the_limit(limit: int) -> None:
    driver, backend, store = _driver(
        [tool_response(function_call_item("find_entities"))],
        max_tool_iterations=limit,
    )

    with pytest.raises(ToolIterationLimitError) as excinfo:
        await driver.run()

    assert excinfo.value.limit == limit
    assert str(excinfo.value) == f"Assistant exceeded the tool-call limit ({limit})."
    assert len(backend.calls) == limit + 1
    assert driver.iteration == limit
    results = [item for item in store.wire if isinstance(item, ToolResult)]
    assert len(results) == limit


@pytest.mark.asyncio
async def test_reply_on_last_allowed_request_succeeds() -> None:
    driver, backend, _ = _driver(
        [
            tool_response(function_call_item("find_entities", call_id="c1")),
            tool_response(function_call_item("find_entities", call_id="c2")),
            text_response("finished"),
        ],
        max_tool_iterations=2,
    )

    result = await driver.run()

    assert result.text == "finished"
    assert len(backend.calls) == 3


# -----------------------------------------------------------------------------
# Callbacks
# -----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_tool_callbacks_fire_around_each_invocation() -> None:
    events: list[tuple[str, str]] = []

    def on_start(call: ToolCall) -> None:
        events.append(("start", call.call_id))

    async def on_result(call: ToolCall, result: ToolResult) -> None:
        events.append(("result", result.output))

    driver, _, _ = _driver(
        [
            tool_response(
                function_call_item("find_entities", call_id="c1"),
                function_call_item("find_entities", call_id="c2"),
            ),
            text_response("ok"),
        ],
        on_tool_start=on_start,
        on_tool_result=on_result,
    )

    await driver.run()

    assert events == [
        ("start", "c1"),
        ("result", "find_entities ok"),
        ("start", "c2"),
        ("result", "find_entities ok"),
    ]


@pytest.mark.asyncio
async def test_backend_error_propagates_unchanged() -> None:
    error = RuntimeError("connection reset")
    driver, _, _ = _driver([tool_response(function_call_item("find_entities")), error])

    with pytest.raises(RuntimeError) as excinfo:
        await driver.run()

    assert excinfo.value is error
