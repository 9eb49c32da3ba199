"""Per-turn request and state."""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from agent_chat.domain.models import AgentDefinition, ChatMessage
from agent_chat.infrastructure.observability.logging import get_logger
from agent_chat.interfaces import IModelProvider, ITool
from agent_chat.orchestration.events import TurnState

logger = get_logger(__name__)

_TRANSITIONS: dict[TurnState, frozenset[TurnState]] = {
    TurnState.INIT: frozenset({TurnState.DISPATCHED, TurnState.ABORTED, TurnState.FAILED}),
    TurnState.DISPATCHED: frozenset({TurnState.STREAMING, TurnState.TOOL_PENDING, TurnState.COMPLETED, TurnState.ABORTED, TurnState.FAILED}),
    TurnState.STREAMING: frozenset({TurnState.TOOL_PENDING, TurnState.COMPLETED, TurnState.ABORTED, TurnState.FAILED}),
    TurnState.TOOL_PENDING: frozenset({TurnState.DISPATCHED, TurnState.COMPLETED, TurnState.ABORTED, TurnState.FAILED}),
}


@dataclass
class ChatTurnRequest:
    """One incoming chat turn, as the orchestrator sees it."""
    messages: list[ChatMessage]
    agent_id: Optional[str] = None
    is_authenticated: bool = False
    owner_id: Optional[str] = None


@dataclass
class PreparedTurn:
    """
    A resolved turn, ready to stream.

    Created by ``ChatOrchestrator.prepare``; every field resolved there is
    fixed for the lifetime of the turn.
    """
    request: ChatTurnRequest
    agent: AgentDefinition
    provider: IModelProvider
    system_prompt: str
    tools: dict[str, ITool]
    tool_specs: list[dict[str, Any]]
    turn_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: TurnState = TurnState.INIT
    steps: int = 0
    finish_reason: Optional[str] = None
    text_parts: list[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.perf_counter)

    @property
    def text(self) -> str:
        return "".join(self.text_parts)

    @property
    def owner_id(self) -> Optional[str]:
        """Owner for persistence: only an authenticated caller owns a turn."""
        if not self.request.is_authenticated:
            return None
        return self.request.owner_id or None

    @property
    def last_user_message(self) -> ChatMessage:
        return self.request.messages[-1]

    def transition(self, new_state: TurnState) -> None:
        """Move to ``new_state``; terminal states are final."""
        if self.state is new_state:
            return
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise RuntimeError(f"Illegal turn transition {self.state.value} -> {new_state.value}")
        logger.debug("Turn state changed", turn_id=self.turn_id, previous=self.state.value, state=new_state.value)
        self.state = new_state

    def model_messages(self) -> list[dict[str, Any]]:
        """Provider message list: agent system prompt, then the conversation."""
        messages: list[dict[str, Any]] = [{"role": "system", "content": self.system_prompt}]
        for message in self.request.messages:
            if message.role == "system":
                # The agent's prompt is the only system message
                continue
            messages.append({"role": message.role, "content": message.content})
        return messages
