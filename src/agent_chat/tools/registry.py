# src/agent_chat/tools/registry.py
"""
Tool registry for managing tool executors.

Every configured tool id maps to one ITool executor. The registry is the
only place tool arguments are validated: a call that does not satisfy the
executor's input model never reaches ``execute``.
"""
from typing import Any, Iterable, Mapping
from pydantic import BaseModel, ValidationError as PydanticValidationError

from agent_chat.domain.exceptions import ToolInputError, UnknownTool
from agent_chat.domain.models import ToolDefinition
from agent_chat.interfaces import ITool


class ToolRegistry:
    """
    Registry for tool executors.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(AnalyzeFileTool())
        >>> args = registry.validate("analyzeFile", {"fileName": "a.pdf", ...})
        >>> result = await registry.execute("analyzeFile", args)
    """

    def __init__(self, tools: Iterable[ITool] = ()):
        self._tools: dict[str, ITool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: ITool) -> None:
        """
        Register a tool.

        Args:
            tool: Tool instance (ITool implementation)
        """
        self._tools[tool.name] = tool

    def get(self, name: str) -> ITool | None:
        """
        Get a tool by name.

        Args:
            name: Tool name

        Returns:
            Tool instance or None if not found
        """
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def list_tool_names(self) -> list[str]:
        """
        List all registered tool names.

        Returns:
            List of tool names

        Example:
            >>> registry.list_tool_names()
            ['analyzeFile', 'generateInsights']
        """
        return list(self._tools.keys())

    def to_openai_format(
        self,
        tools: Mapping[str, ITool] | None = None,
        definitions: Mapping[str, ToolDefinition] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Export tools in OpenAI function calling format.

        Args:
            tools: Subset to export (default: every registered tool)
            definitions: Configured definitions; their description and input
                schema take precedence over the executor's own

        Returns:
            List of tools in OpenAI format
        """
        selected = self._tools if tools is None else tools
        definitions = definitions or {}
        exported = []
        for name, tool in selected.items():
            schema = tool.schema
            definition = definitions.get(name)
            exported.append(
                {
                    "type": "function",
                    "function": {
                        "name": name,
                        "description": (definition.description if definition and definition.description else schema.description),
                        "parameters": (definition.input_schema if definition and definition.input_schema else schema.parameters),
                    },
                }
            )
        return exported

    def validate(self, name: str, arguments: Any) -> BaseModel:
        """
        Validate raw arguments against a tool's input model.

        Args:
            name: Tool name
            arguments: Decoded arguments (normally a dict)

        Returns:
            Typed input model instance

        Raises:
            UnknownTool: If no executor is registered under ``name``
            ToolInputError: If the arguments do not satisfy the input model
        """
        tool = self.get(name)
        if tool is None:
            raise UnknownTool(name)
        if not isinstance(arguments, dict):
            raise ToolInputError(
                name,
                errors=[{"loc": [], "msg": "Tool arguments must be a JSON object", "type": "dict_type"}],
            )
        try:
            return tool.input_model.model_validate(arguments)
        except PydanticValidationError as exc:
            raise ToolInputError(
                name,
                errors=exc.errors(include_url=False, include_context=False),
            ) from exc

    async def execute(self, name: str, arguments: BaseModel | dict[str, Any]) -> dict[str, Any]:
        """
        Execute a tool by name.

        Raw dict arguments are validated first; a typed model is passed through.

        Raises:
            UnknownTool: If tool not found
            ToolInputError: If validation fails
            Exception: Any exception from tool execution
        """
        tool = self.get(name)
        if tool is None:
            raise UnknownTool(name)
        if not isinstance(arguments, tool.input_model):
            arguments = self.validate(name, arguments)
        return await tool.execute(arguments)
