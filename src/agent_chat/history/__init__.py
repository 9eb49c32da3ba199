"""Chat history persistence."""

from agent_chat.history.models import ChatMessageRecord
from agent_chat.history.recorder import HistoryEntry, HistoryRecorder
from agent_chat.history.repository import ChatMessageRepository

__all__ = [
    "ChatMessageRecord",
    "ChatMessageRepository",
    "HistoryEntry",
    "HistoryRecorder",
]
