"""Persisted chat history of the current identity."""
from typing import Optional

from fastapi import APIRouter, Query

from agent_chat.api.dependencies import Agents, CurrentIdentity, Recorder
from agent_chat.api.schemas.chat import HistoryResponse

router = APIRouter()


@router.get("/history", response_model=HistoryResponse, response_model_by_alias=True)
async def get_history(
    identity: CurrentIdentity,
    recorder: Recorder,
    registry: Agents,
    agent_id: Optional[str] = Query(default=None, alias="agentId"),
    limit: Optional[int] = Query(default=None, ge=1),
) -> HistoryResponse:
    """
    Most recent turns for the (identity, agent) pair, oldest first.

    Without an identity the list is empty. A missing agent id means the
    default agent; unknown ids are looked up as given, since persisted turns
    keep their agent id after the agent leaves the configuration.
    """
    agent_id = agent_id or registry.default_agent_id
    turns = await recorder.fetch_history(identity.owner_id, agent_id, limit)
    return HistoryResponse(agent_id=agent_id, messages=turns)
