"""Shared test helpers and stub classes.

Fake Responses API backends and builders for response payloads. Import from
here instead of duplicating these in individual test files.
"""

from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any, Callable, Iterable


def message_item(text: str) -> SimpleNamespace:
    return SimpleNamespace(
        type="message",
        role="assistant",
        content=[SimpleNamespace(type="output_text", text=text)],
    )


def function_call_item(
    name: str,
    arguments: str = "{}",
    call_id: str | None = "call_1",
    item_id: str | None = None,
) -> SimpleNamespace:
    return SimpleNamespace(
        type="function_call",
        name=name,
        arguments=arguments,
        call_id=call_id,
        id=item_id,
    )


def reasoning_item(item_id: str = "rs_1") -> dict[str, Any]:
    return {"type": "reasoning", "id": item_id, "summary": []}


def make_response(*items: Any, output_text: str | None = None) -> SimpleNamespace:
    return SimpleNamespace(output=list(items), output_text=output_text)


def text_response(text: str) -> SimpleNamespace:
    return make_response(message_item(text))


def tool_response(*calls: SimpleNamespace, reasoning: Iterable[Any] = ()) -> SimpleNamespace:
    return make_response(*reasoning, *calls)


class FakeResponses:
    """Scripted stand-in for ``AsyncOpenAI().responses``.

    Each script entry is either a response object, an exception to raise, or
    a callable receiving the request payload and returning one of those.
    The last entry repeats once the script runs out.
    """

    def __init__(self, script: Iterable[Any]) -> None:
        self._script = list(script)
        self.calls: list[dict[str, Any]] = []

    async def create(self, **payload: Any) -> Any:
        self.calls.append(copy.deepcopy(payload))
        index = min(len(self.calls) - 1, len(self._script) - 1)
        entry = self._script[index]
        if callable(entry) and not isinstance(entry, SimpleNamespace):
            entry = entry(payload)
        if isinstance(entry, BaseException):
            raise entry
        return entry


class FakeBackend:
    """Minimal object exposing ``responses`` and ``close`` like ``AsyncOpenAI``."""

    def __init__(self, script: Iterable[Any]) -> None:
        self.responses = FakeResponses(script)
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self.responses.calls


def always(factory: Callable[[dict[str, Any]], Any]) -> list[Callable[[dict[str, Any]], Any]]:
    """Script that answers every request through ``factory``."""
    return [factory]
