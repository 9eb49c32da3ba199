"""Agent listing."""
from fastapi import APIRouter, Query

from agent_chat.api.dependencies import Agents
from agent_chat.api.schemas.chat import AgentSummary, AgentsResponse

router = APIRouter()


@router.get("/agents", response_model=AgentsResponse, response_model_by_alias=True)
async def list_agents(
    registry: Agents,
    is_authenticated: bool = Query(default=False, alias="isAuthenticated"),
) -> AgentsResponse:
    """Agents available to the caller, in configuration order."""
    return AgentsResponse(
        agents=[
            AgentSummary.model_validate(agent.public_view())
            for agent in registry.get_available(is_authenticated)
        ],
        default_agent=registry.default_agent_id,
    )
