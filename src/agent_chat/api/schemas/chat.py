"""Request and response bodies of the chat API (camelCase on the wire)."""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from agent_chat.domain.models import ChatMessage, ConversationTurn


class ChatRequest(BaseModel):
    """Body of POST /chat."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(..., description="Conversation so far, ending with the user message")
    is_authenticated: bool = Field(default=False, alias="isAuthenticated")
    agent_id: Optional[str] = Field(
        default=None,
        alias="agentId",
        description="Requested agent; unknown ids fall back to the default agent",
        examples=["chat-assistant"],
    )


class AgentSummary(BaseModel):
    id: str
    name: str
    description: str
    model: str
    requires_auth: bool = Field(..., alias="requiresAuth")

    model_config = ConfigDict(populate_by_name=True)


class AgentsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    agents: list[AgentSummary]
    default_agent: str = Field(..., alias="defaultAgent")


class HistoryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    agent_id: str = Field(..., alias="agentId")
    messages: list[ConversationTurn]


class AnalyzeFileRequest(BaseModel):
    """Body of POST /analyze-file."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(..., alias="fileName", min_length=1)
    file_content: str = Field(..., alias="fileContent", min_length=1)


class GenerateInsightsRequest(BaseModel):
    """Body of POST /generate-insights."""

    model_config = ConfigDict(populate_by_name=True)

    topic: str = Field(..., min_length=1)
    context: str = ""
    file_analyses: Optional[list[Any]] = Field(default=None, alias="fileAnalyses")
