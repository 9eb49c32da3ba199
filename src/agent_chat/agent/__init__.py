"""Agent registry and prompt composition."""

from agent_chat.agent.prompts import compose_prompt
from agent_chat.agent.registry import AgentRegistry

__all__ = [
    "AgentRegistry",
    "compose_prompt",
]
