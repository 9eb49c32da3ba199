"""
Domain models shared by the registry, orchestrator and history side-channel.

Configuration uses camelCase keys (``maxSteps``, ``systemPrompt``); the models
accept both the configuration keys and the Python field names.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgentDefinition(BaseModel):
    """Immutable agent configuration entry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1)
    display_name: str = Field(..., alias="name", min_length=1)
    description: str = ""
    model_id: str = Field(..., alias="model", min_length=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_steps: int = Field(default=5, alias="maxSteps", ge=1)
    system_prompt: str = Field(..., alias="systemPrompt")
    authenticated_system_prompt: str | None = Field(
        default=None, alias="authenticatedSystemPrompt"
    )
    tool_ids: tuple[str, ...] = Field(default=(), alias="tools")
    requires_auth: bool = Field(default=False, alias="requiresAuth")

    @field_validator("tool_ids", mode="before")
    @classmethod
    def _dedupe_tools(cls, value: Any) -> Any:
        # Keep configuration order, drop repeats
        if isinstance(value, (list, tuple)):
            return tuple(dict.fromkeys(value))
        return value

    def public_view(self) -> dict[str, Any]:
        """Client-facing summary (no prompts)."""
        return {
            "id": self.id,
            "name": self.display_name,
            "description": self.description,
            "model": self.model_id,
            "requiresAuth": self.requires_auth,
        }


class ToolDefinition(BaseModel):
    """Immutable tool configuration entry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    description: str = ""
    input_schema: dict[str, Any] | None = Field(default=None, alias="inputSchema")


class ConversationTurn(BaseModel):
    """A persisted user or assistant message."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, from_attributes=True)

    id: int | None = None
    role: Literal["user", "assistant"]
    content: str
    owner_id: str = Field(..., alias="userId")
    agent_id: str = Field(..., alias="agentId")
    extracted_text: str | None = Field(default=None, alias="extractedText")
    created_at: datetime | None = Field(default=None, alias="createdAt")


class ChatMessage(BaseModel):
    """A message as sent by the client."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role: Literal["user", "assistant", "system"]
    content: str
    extracted_text: str | None = Field(default=None, alias="extractedText")
