"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from assistant_runtime.ai.orchestration.conversation import ConversationStore
from assistant_runtime.ai.orchestration.types import Message


@pytest.fixture
def seeded_store() -> ConversationStore:
    store = ConversationStore("rules")
    store.append(Message.user("earlier"))
    store.append(Message.assistant("reply"))
    return store
