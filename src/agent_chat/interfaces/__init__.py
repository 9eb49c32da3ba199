# src/agent_chat/interfaces/__init__.py
from .tool import ITool, ToolSchema
from .provider import (
    IModelProvider,
    ModelFamily,
    ProviderEvent,
    StepFinish,
    TextDelta,
    ToolCallRequest,
)

__all__ = [
    "ITool",
    "ToolSchema",
    "IModelProvider",
    "ModelFamily",
    "ProviderEvent",
    "StepFinish",
    "TextDelta",
    "ToolCallRequest",
]
