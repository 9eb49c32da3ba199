"""
Transports used by the session controller.

``ChatClient`` talks to the HTTP API and decodes its server-sent events;
``InProcessTransport`` calls an orchestrator living in the same process.
Both yield the same stream event models and honour a cancel event: once it
is set the transport stops waiting, releases the upstream connection and
ends the iteration.
"""
from __future__ import annotations

import asyncio
from contextlib import aclosing
from typing import Any, AsyncIterator, Optional, Protocol

import httpx

from agent_chat.auth.identity import Identity
from agent_chat.domain.exceptions import ExternalError
from agent_chat.domain.models import AgentDefinition, ChatMessage, ConversationTurn
from agent_chat.history.recorder import HistoryRecorder
from agent_chat.infrastructure.observability.logging import get_logger
from agent_chat.orchestration.events import BaseEvent, parse_event
from agent_chat.orchestration.orchestrator import ChatOrchestrator
from agent_chat.orchestration.turn import ChatTurnRequest

logger = get_logger(__name__)

_CANCELLED = object()


async def _next_line(lines: AsyncIterator[str], cancel_event: Optional[asyncio.Event]) -> Any:
    """Next line of the response, None at its end, or _CANCELLED once the event is set."""
    if cancel_event is None:
        return await anext(lines, None)
    if cancel_event.is_set():
        return _CANCELLED

    reader = asyncio.ensure_future(anext(lines, None))
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({reader, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for fut in (reader, waiter):
            if not fut.done():
                fut.cancel()
    if waiter in done:
        await asyncio.gather(reader, return_exceptions=True)
        return _CANCELLED
    return reader.result()


class ChatTransport(Protocol):
    def stream_chat(
        self,
        messages: list[ChatMessage],
        agent_id: str,
        identity: Identity,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[BaseEvent]:
        ...

    async def fetch_history(
        self,
        agent_id: str,
        identity: Identity,
        limit: Optional[int] = None,
    ) -> list[ConversationTurn]:
        ...

    async def list_agents(self, identity: Identity) -> list[dict[str, Any]]:
        ...


class ChatClientError(ExternalError):
    """The chat API answered with a non-2xx status."""

    def __init__(self, status_code: int, payload: Any):
        error = payload.get("error") if isinstance(payload, dict) else None
        message = error.get("message") if isinstance(error, dict) else None
        super().__init__(
            message or f"Chat API returned HTTP {status_code}",
            details={"status_code": status_code, "response": payload},
        )
        self.status_code = status_code


class ChatClient:
    """
    HTTP transport for the chat API.

    Example:
        >>> async with ChatClient("http://localhost:8000") as client:
        ...     async for event in client.stream_chat(messages, "chat-assistant", Identity.anonymous()):
        ...         print(event)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        identity_header: str = "X-User-Id",
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._identity_header = identity_header
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, identity: Identity) -> dict[str, str]:
        if identity.is_authenticated and identity.owner_id:
            return {self._identity_header: identity.owner_id}
        return {}

    @staticmethod
    async def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        await response.aread()
        try:
            payload = response.json()
        except ValueError:
            payload = response.text
        raise ChatClientError(response.status_code, payload)

    async def stream_chat(
        self,
        messages: list[ChatMessage],
        agent_id: str,
        identity: Identity,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[BaseEvent]:
        """
        POST /chat and yield decoded events.

        Closing the iterator, or setting ``cancel_event`` while a read is
        pending, closes the HTTP response, which the server treats as
        cancellation of the turn.
        """
        payload = {
            "messages": [m.model_dump(by_alias=True, exclude_none=True) for m in messages],
            "isAuthenticated": identity.is_authenticated,
            "agentId": agent_id,
        }
        async with self._client.stream(
            "POST",
            "/chat",
            json=payload,
            headers={**self._headers(identity), "Accept": "text/event-stream"},
        ) as response:
            await self._raise_for_status(response)
            async with aclosing(response.aiter_lines()) as lines:
                while True:
                    line = await _next_line(lines, cancel_event)
                    if line is None:
                        break
                    if line is _CANCELLED:
                        logger.info("Chat stream cancelled", agent_id=agent_id)
                        break
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data:
                        yield parse_event(data)

    async def fetch_history(
        self,
        agent_id: str,
        identity: Identity,
        limit: Optional[int] = None,
    ) -> list[ConversationTurn]:
        params: dict[str, Any] = {"agentId": agent_id}
        if limit is not None:
            params["limit"] = limit
        response = await self._client.get("/history", params=params, headers=self._headers(identity))
        await self._raise_for_status(response)
        return [ConversationTurn.model_validate(item) for item in response.json()["messages"]]

    async def list_agents(self, identity: Identity) -> list[dict[str, Any]]:
        response = await self._client.get(
            "/agents",
            params={"isAuthenticated": str(identity.is_authenticated).lower()},
            headers=self._headers(identity),
        )
        await self._raise_for_status(response)
        return response.json()["agents"]


class InProcessTransport:
    """Transport that drives an orchestrator directly, without HTTP."""

    def __init__(self, orchestrator: ChatOrchestrator, recorder: Optional[HistoryRecorder] = None):
        self._orchestrator = orchestrator
        self._recorder = recorder if recorder is not None else orchestrator.recorder

    async def stream_chat(
        self,
        messages: list[ChatMessage],
        agent_id: str,
        identity: Identity,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[BaseEvent]:
        turn = self._orchestrator.prepare(
            ChatTurnRequest(
                messages=list(messages),
                agent_id=agent_id,
                is_authenticated=identity.is_authenticated,
                owner_id=identity.owner_id,
            )
        )
        async with aclosing(self._orchestrator.stream(turn, cancel_event=cancel_event)) as events:
            async for event in events:
                yield event

    async def fetch_history(
        self,
        agent_id: str,
        identity: Identity,
        limit: Optional[int] = None,
    ) -> list[ConversationTurn]:
        if self._recorder is None or not identity.is_authenticated:
            return []
        return await self._recorder.fetch_history(identity.owner_id, agent_id, limit)

    async def list_agents(self, identity: Identity) -> list[dict[str, Any]]:
        available: list[AgentDefinition] = self._orchestrator.agent_registry.get_available(
            identity.is_authenticated
        )
        return [agent.public_view() for agent in available]
