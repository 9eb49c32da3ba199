# src/agent_chat/interfaces/tool.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any
from pydantic import BaseModel


class ToolSchema(BaseModel):
    """JSON Schema for tool parameters."""
    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema format


class ITool(ABC):
    """
    Interface for any tool executor.

    Arguments are validated against ``input_model`` before ``execute`` runs,
    so implementations receive an already-typed model instance.

    Example:
        class LookupInput(BaseModel):
            query: str

        class LookupTool(ITool):
            name = "lookup"
            description = "Look something up"
            input_model = LookupInput

            async def execute(self, arguments: LookupInput) -> dict[str, Any]:
                return {"query": arguments.query, "answer": "..."}
    """

    name: str
    description: str = ""
    input_model: type[BaseModel]

    @property
    def schema(self) -> ToolSchema:
        """Return tool schema for LLM function calling."""
        return ToolSchema(
            name=self.name,
            description=self.description,
            parameters=self.input_model.model_json_schema(by_alias=True),
        )

    @abstractmethod
    async def execute(self, arguments: BaseModel) -> dict[str, Any]:
        """
        Execute the tool with validated arguments.

        Args:
            arguments: Instance of ``input_model``

        Returns:
            JSON-serialisable result
        """
        pass
