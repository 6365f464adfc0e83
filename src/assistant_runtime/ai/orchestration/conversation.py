"""Append-only conversation logs.

A client keeps two logs side by side. The *display log* records every item
the turn loop produced or consumed, reasoning traces included. The *wire
history* holds exactly what the next backend request will carry. Both logs
can only grow by appending, and only shrink through :meth:`truncate_to`
during a turn rollback or through :meth:`ConversationStore.reset`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

from .types import ConversationItem, Message

__all__ = [
    "ConversationLog",
    "ConversationStore",
    "StoreCheckpoint",
]

LOGGER = logging.getLogger(__name__)


class ConversationLog:
    """Ordered, append-only sequence of conversation items.

    The first ``pinned`` items (the system instruction, when configured) sit
    below the truncation floor and survive every :meth:`truncate_to`.
    """

    def __init__(self, pinned: Sequence[ConversationItem] = ()) -> None:
        self._items: list[ConversationItem] = list(pinned)
        self._floor = len(self._items)

    @property
    def floor(self) -> int:
        return self._floor

    def append(self, item: ConversationItem) -> None:
        self._items.append(item)

    def snapshot_length(self) -> int:
        return len(self._items)

    def truncate_to(self, length: int) -> int:
        """Drop items past ``length``; return how many were removed."""
        if length < 0:
            raise ValueError("length must be non-negative")
        target = max(length, self._floor)
        removed = max(0, len(self._items) - target)
        if removed:
            del self._items[target:]
        return removed

    def items(self) -> tuple[ConversationItem, ...]:
        return tuple(self._items)

    def to_wire(self) -> list[dict[str, Any]]:
        return [item.to_wire() for item in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ConversationItem]:
        return iter(tuple(self._items))

    def __getitem__(self, index: int) -> ConversationItem:
        return self._items[index]


@dataclass(slots=True, frozen=True)
class StoreCheckpoint:
    """Lengths of both logs captured before a turn mutates them."""

    display_length: int
    wire_length: int


class ConversationStore:
    """Display log and wire history owned by one assistant client."""

    def __init__(self, instructions: str | None = None) -> None:
        self._instructions = instructions or None
        self._display = self._new_log()
        self._wire = self._new_log()

    @property
    def display(self) -> ConversationLog:
        return self._display

    @property
    def wire(self) -> ConversationLog:
        return self._wire

    @property
    def instructions(self) -> str | None:
        return self._instructions

    def append(self, item: ConversationItem) -> None:
        """Append ``item`` to both logs."""
        self._display.append(item)
        self._wire.append(item)

    def append_display(self, item: ConversationItem) -> None:
        """Append ``item`` to the display log only."""
        self._display.append(item)

    def checkpoint(self) -> StoreCheckpoint:
        return StoreCheckpoint(
            display_length=self._display.snapshot_length(),
            wire_length=self._wire.snapshot_length(),
        )

    def restore(self, checkpoint: StoreCheckpoint) -> int:
        """Truncate both logs back to ``checkpoint``; return items removed."""
        removed = self._display.truncate_to(checkpoint.display_length)
        removed += self._wire.truncate_to(checkpoint.wire_length)
        return removed

    def reset(self) -> None:
        """Clear both logs back to the system instruction."""
        self._display = self._new_log()
        self._wire = self._new_log()
        LOGGER.debug("Conversation reset")

    def _new_log(self) -> ConversationLog:
        if self._instructions:
            return ConversationLog(pinned=(Message.system(self._instructions),))
        return ConversationLog()
