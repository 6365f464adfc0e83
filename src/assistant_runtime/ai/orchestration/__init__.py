"""Conversation state, tool dispatch and the turn loop."""

from .types import (
    AssistantResult,
    ConversationItem,
    Message,
    ReasoningItem,
    ToolCall,
    ToolResult,
)
from .conversation import ConversationLog, ConversationStore, StoreCheckpoint
from .rollback import TransactionState, TurnTransaction, turn_transaction
from .turn import (
    ResponseArtifacts,
    TurnDriver,
    TurnState,
    collect_response_artifacts,
    extract_response_text,
)

__all__ = [
    # types.py
    "AssistantResult",
    "ConversationItem",
    "Message",
    "ReasoningItem",
    "ToolCall",
    "ToolResult",
    # conversation.py
    "ConversationLog",
    "ConversationStore",
    "StoreCheckpoint",
    # rollback.py
    "TransactionState",
    "TurnTransaction",
    "turn_transaction",
    # turn.py
    "ResponseArtifacts",
    "TurnDriver",
    "TurnState",
    "collect_response_artifacts",
    "extract_response_text",
]
