# src/agent_chat/interfaces/provider.py
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Union


class ModelFamily(str, Enum):
    """Model provider families a model id can route to."""
    GEMINI = "gemini"
    OPENAI = "openai"


@dataclass
class TextDelta:
    """Incremental content token(s) from the model."""
    text: str


@dataclass
class ToolCallRequest:
    """A complete tool invocation requested by the model."""
    call_id: str
    name: str
    arguments: str  # raw JSON text as produced by the model


@dataclass
class StepFinish:
    """End of one model call."""
    finish_reason: str = "stop"


ProviderEvent = Union[TextDelta, ToolCallRequest, StepFinish]


class IModelProvider(ABC):
    """
    Uniform streaming interface over a model family.

    A provider is bound to one family and one effective model name.
    """

    family: ModelFamily
    model_name: str

    @abstractmethod
    def stream(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        temperature: float | None = None,
    ) -> AsyncIterator[ProviderEvent]:
        """
        Run one model call and yield its output incrementally.

        Tool calls are yielded whole (arguments fully accumulated), after the
        content of the same call and before ``StepFinish``.
        """
        pass

    @abstractmethod
    async def complete_json(
        self,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """Run one non-streaming call that must answer with a JSON object."""
        pass
