"""Model providers and routing."""

from agent_chat.providers.openai_compatible import OpenAICompatibleProvider
from agent_chat.providers.router import ModelRouter

__all__ = [
    "ModelRouter",
    "OpenAICompatibleProvider",
]
