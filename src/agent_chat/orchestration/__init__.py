"""Streaming chat orchestration."""

from agent_chat.orchestration.events import (
    ContentDeltaEvent,
    DoneEvent,
    ErrorEvent,
    ToolCallEvent,
    ToolResultEvent,
    TurnState,
    encode_sse,
    parse_event,
)
from agent_chat.orchestration.orchestrator import STEP_BUDGET_EXHAUSTED, ChatOrchestrator
from agent_chat.orchestration.turn import ChatTurnRequest, PreparedTurn

__all__ = [
    "ChatOrchestrator",
    "ChatTurnRequest",
    "ContentDeltaEvent",
    "DoneEvent",
    "ErrorEvent",
    "PreparedTurn",
    "STEP_BUDGET_EXHAUSTED",
    "ToolCallEvent",
    "ToolResultEvent",
    "TurnState",
    "encode_sse",
    "parse_event",
]
