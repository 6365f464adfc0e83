"""All-or-nothing turn scope over the conversation store.

A turn either finishes with an assistant message or leaves both logs
exactly as they were before the user message was appended.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum, auto
from typing import Iterator

from .conversation import ConversationStore, StoreCheckpoint

__all__ = [
    "TransactionState",
    "TurnTransaction",
    "turn_transaction",
]

LOGGER = logging.getLogger(__name__)


class TransactionState(Enum):
    """State of a turn transaction."""

    PENDING = auto()  # Not started
    ACTIVE = auto()  # Turn mutating the store
    COMMITTED = auto()  # Turn finished, mutations kept
    ROLLED_BACK = auto()  # Mutations discarded


class TurnTransaction:
    """Records store lengths at turn start and restores them on failure."""

    def __init__(self, store: ConversationStore) -> None:
        self._store = store
        self._checkpoint: StoreCheckpoint | None = None
        self.state = TransactionState.PENDING

    @property
    def checkpoint(self) -> StoreCheckpoint | None:
        return self._checkpoint

    def begin(self) -> StoreCheckpoint:
        if self.state is not TransactionState.PENDING:
            raise RuntimeError(f"Cannot begin: transaction is {self.state.name}")
        self._checkpoint = self._store.checkpoint()
        self.state = TransactionState.ACTIVE
        return self._checkpoint

    def commit(self) -> None:
        if self.state is not TransactionState.ACTIVE:
            raise RuntimeError(f"Cannot commit: transaction is {self.state.name}")
        self.state = TransactionState.COMMITTED

    def rollback(self, reason: str | None = None) -> bool:
        """Truncate both logs back to the checkpoint.

        Returns:
            True if the store was restored, False if the transaction was not active.
        """
        if self.state is not TransactionState.ACTIVE or self._checkpoint is None:
            LOGGER.debug("Cannot rollback: transaction is %s", self.state.name)
            return False
        removed = self._store.restore(self._checkpoint)
        self.state = TransactionState.ROLLED_BACK
        LOGGER.info(
            "Turn rolled back (%d item(s) removed): %s",
            removed,
            reason or "no reason provided",
        )
        return True


@contextmanager
def turn_transaction(store: ConversationStore) -> Iterator[TurnTransaction]:
    """Run a turn against ``store``, rolling back if anything escapes.

    ``BaseException`` is intercepted as well so that task cancellation undoes
    the partial turn before propagating.

    Example:
        with turn_transaction(store) as tx:
            store.append(Message.user(text))
            result = await driver.run()
            tx.commit()
    """
    tx = TurnTransaction(store)
    tx.begin()
    try:
        yield tx
    except BaseException as exc:
        tx.rollback(f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__)
        raise
    else:
        if tx.state is TransactionState.ACTIVE:
            tx.commit()
