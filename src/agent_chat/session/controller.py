"""
Client-side chat session.

Holds the displayed message list for one user and one selected agent. The
only serialisation is the input gate: while an agent switch is reloading
history, ``send`` waits until the displayed set has been replaced.
"""
from __future__ import annotations

import asyncio
import uuid
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

from agent_chat.auth.identity import Identity
from agent_chat.domain.exceptions import AppError
from agent_chat.domain.models import ChatMessage, ConversationTurn
from agent_chat.infrastructure.observability.logging import get_logger
from agent_chat.orchestration.events import ContentDeltaEvent, DoneEvent, ErrorEvent
from agent_chat.session.client import ChatTransport
from agent_chat.session.extraction import TextExtractor, Upload

logger = get_logger(__name__)

WELCOME_ID = "welcome"
DEFAULT_ALLOWED_TYPES = ("application/pdf", "text/plain")
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

GUEST_WELCOME = (
    "Hello! I'm your Healthcare Test Case Generator. I can help analyze requirements and "
    "generate compliant test cases. You can chat with me right now! Sign in to unlock file "
    "uploads, document analysis, and chat history backup features."
)
USER_WELCOME = (
    "Welcome to the Healthcare Test Case Generator! I can help you convert healthcare software "
    "requirements into compliant test cases. Upload your specifications (PDF, TXT) and I'll "
    "analyze them to generate comprehensive test cases following FDA, IEC 62304, and ISO "
    "standards. How can I assist you today?"
)
WELCOME_BACK = (
    "Welcome back! I've loaded your previous conversation with {agent_name}. How can I help "
    "you continue with your healthcare test case generation?"
)
DOCUMENT_PROMPT = (
    "📄 Healthcare Requirements Document Uploaded: \"{file_name}\"\n\n"
    "Extracted Content:\n\n{text}\n\n"
    "Please analyze this healthcare software requirement and generate compliant test cases "
    "following FDA, IEC 62304, ISO 9001, ISO 13485, and ISO 27001 standards. Include "
    "traceability matrix and compliance validation."
)


@dataclass
class DisplayMessage:
    """One entry of the displayed conversation."""
    role: Literal["user", "assistant", "notice"]
    content: str
    extracted_text: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_turn(cls, turn: ConversationTurn) -> "DisplayMessage":
        return cls(
            role=turn.role,
            content=turn.content,
            extracted_text=turn.extracted_text,
            id=f"history-{turn.id}" if turn.id is not None else uuid.uuid4().hex,
        )


class ChatSessionController:
    """
    Session state and actions for one client.

    Args:
        transport: HTTP or in-process transport
        identity: Current identity from the session provider
        agent_id: Initially selected agent
        extractor: Text extractor for uploads (uploads are refused without one)
        max_upload_bytes: Size limit for uploads
        allowed_types: Accepted upload content types
        history_limit: Turns loaded on agent switch

    Example:
        >>> controller = ChatSessionController(transport, Identity.user("u1"), "chat-assistant")
        >>> await controller.switch_agent("compliance-expert")
        >>> reply = await controller.send("Generate test cases for login")
    """

    def __init__(
        self,
        transport: ChatTransport,
        identity: Identity,
        agent_id: str,
        extractor: Optional[TextExtractor] = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        allowed_types: Sequence[str] = DEFAULT_ALLOWED_TYPES,
        history_limit: int = 50,
    ):
        self.transport = transport
        self.identity = identity
        self.agent_id = agent_id
        self.extractor = extractor
        self.max_upload_bytes = max_upload_bytes
        self.allowed_types = tuple(allowed_types)
        self.history_limit = history_limit
        self.agent_names: dict[str, str] = {}
        self.messages: list[DisplayMessage] = [self._welcome()]
        self._input_gate = asyncio.Event()
        self._input_gate.set()
        self._cancel_event: Optional[asyncio.Event] = None
        self._switch_generation = 0

    @property
    def accepting_input(self) -> bool:
        return self._input_gate.is_set()

    def _welcome(self, history_loaded: bool = False) -> DisplayMessage:
        if not self.identity.is_authenticated:
            text = GUEST_WELCOME
        elif history_loaded:
            text = WELCOME_BACK.format(agent_name=self.agent_names.get(self.agent_id, self.agent_id))
        else:
            text = USER_WELCOME
        return DisplayMessage(role="assistant", content=text, id=WELCOME_ID)

    def _notice(self, text: str) -> None:
        self.messages.append(DisplayMessage(role="notice", content=text))

    async def load_agents(self) -> list[dict]:
        """Fetch the agents available to the current identity."""
        agents = await self.transport.list_agents(self.identity)
        self.agent_names = {agent["id"]: agent["name"] for agent in agents}
        return agents

    async def switch_agent(self, agent_id: str) -> None:
        """
        Select another agent and replace the displayed set with its history.

        Input is gated until the replacement is complete. When switches
        overlap, only the latest one replaces the displayed set and reopens
        the gate; results of superseded reloads are discarded.
        """
        self._switch_generation += 1
        generation = self._switch_generation
        self._input_gate.clear()
        try:
            self.agent_id = agent_id
            history: list[ConversationTurn] = []
            if self.identity.is_authenticated:
                try:
                    history = await self.transport.fetch_history(agent_id, self.identity, self.history_limit)
                except AppError as e:
                    logger.warning("History reload failed", agent_id=agent_id, error=e.message)
            if generation != self._switch_generation:
                logger.debug("Superseded history reload discarded", agent_id=agent_id)
                return
            self.messages = [
                self._welcome(history_loaded=bool(history)),
                *(DisplayMessage.from_turn(turn) for turn in history),
            ]
        finally:
            if generation == self._switch_generation:
                self._input_gate.set()

    def conversation(self) -> list[ChatMessage]:
        """Messages sent to the orchestrator (welcome and notices excluded)."""
        return [
            ChatMessage(role=m.role, content=m.content, extracted_text=m.extracted_text)
            for m in self.messages
            if m.role in ("user", "assistant") and m.id != WELCOME_ID
        ]

    def cancel(self) -> None:
        """Abort the reply currently streaming, if any."""
        if self._cancel_event is not None:
            self._cancel_event.set()

    async def send(self, text: str, extracted_text: Optional[str] = None) -> Optional[str]:
        """
        Send a user message and collect the assistant reply.

        Returns:
            The assistant text, or None when the turn failed or was cancelled
        """
        await self._input_gate.wait()
        self.messages.append(DisplayMessage(role="user", content=text, extracted_text=extracted_text))

        cancel_event = asyncio.Event()
        self._cancel_event = cancel_event
        parts: list[str] = []
        completed = False
        try:
            async with aclosing(
                self.transport.stream_chat(
                    self.conversation(),
                    self.agent_id,
                    self.identity,
                    cancel_event=cancel_event,
                )
            ) as events:
                async for event in events:
                    # A delivered done event means the turn is already complete server-side
                    if isinstance(event, DoneEvent):
                        completed = True
                        break
                    if cancel_event.is_set():
                        break
                    if isinstance(event, ContentDeltaEvent):
                        parts.append(event.delta)
                    elif isinstance(event, ErrorEvent):
                        self._notice(f"❌ {event.error.get('message', 'The assistant could not answer')}")
                        break
        except AppError as e:
            logger.warning("Chat request failed", agent_id=self.agent_id, error=e.message)
            self._notice(f"❌ {e.message}")
        finally:
            self._cancel_event = None

        if not completed:
            return None
        reply = "".join(parts)
        self.messages.append(DisplayMessage(role="assistant", content=reply))
        return reply

    async def attach_file(self, upload: Upload) -> Optional[str]:
        """
        Validate an upload, extract its text and send it for analysis.

        Rejected files produce a notice instead of a message.
        """
        if not self.identity.is_authenticated:
            self._notice("Sign in to upload documents for analysis.")
            return None
        if upload.content_type not in self.allowed_types:
            self._notice(
                f"❌ File \"{upload.file_name}\" rejected: Only PDF and TXT files are allowed "
                "for healthcare requirement analysis."
            )
            return None
        if upload.size > self.max_upload_bytes:
            limit_mb = self.max_upload_bytes // (1024 * 1024)
            self._notice(f"❌ File \"{upload.file_name}\" rejected: File size must be less than {limit_mb}MB.")
            return None
        if self.extractor is None:
            self._notice(f"❌ File \"{upload.file_name}\" rejected: No text extractor is configured.")
            return None

        try:
            text = await self.extractor.extract_text(upload)
        except Exception as e:
            logger.warning("Text extraction failed", file_name=upload.file_name, error=str(e))
            self._notice(f"❌ Error processing healthcare requirement document: {e}")
            return None

        return await self.send(
            DOCUMENT_PROMPT.format(file_name=upload.file_name, text=text),
            extracted_text=text,
        )
