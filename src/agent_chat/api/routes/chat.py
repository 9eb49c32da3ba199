"""
POST /chat: one streamed chat turn.

Everything that can fail before output starts (request validation, agent
and provider resolution) runs before the StreamingResponse is created, so
those failures are ordinary JSON error responses. Later failures arrive as
an in-stream ``error`` event. A client disconnect cancels the streaming task,
which aborts the turn.
"""
from contextlib import aclosing
from typing import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from agent_chat.api.dependencies import CurrentIdentity, Orchestrator
from agent_chat.api.schemas.chat import ChatRequest
from agent_chat.orchestration.events import encode_sse
from agent_chat.orchestration.turn import ChatTurnRequest, PreparedTurn
from agent_chat.orchestration.orchestrator import ChatOrchestrator

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _sse_frames(orchestrator: ChatOrchestrator, turn: PreparedTurn) -> AsyncIterator[str]:
    async with aclosing(orchestrator.stream(turn)) as events:
        async for event in events:
            yield encode_sse(event)


@router.post(
    "/chat",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}, "description": "Server-sent event stream"}},
)
async def chat(body: ChatRequest, orchestrator: Orchestrator, identity: CurrentIdentity) -> StreamingResponse:
    """
    Stream an assistant reply.

    Frames carry ``content-delta``, ``tool-call``, ``tool-result`` and a final
    ``done`` (or ``error``) event.
    """
    turn = orchestrator.prepare(
        ChatTurnRequest(
            messages=body.messages,
            agent_id=body.agent_id,
            is_authenticated=body.is_authenticated,
            owner_id=identity.owner_id,
        )
    )
    return StreamingResponse(
        _sse_frames(orchestrator, turn),
        media_type="text/event-stream",
        headers={**SSE_HEADERS, "X-Agent-Id": turn.agent.id},
    )
