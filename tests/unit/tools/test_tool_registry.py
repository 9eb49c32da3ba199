# tests/unit/tools/test_tool_registry.py
"""Unit tests for tool registry and built-in tools."""

from typing import Any

import pytest
from pydantic import BaseModel

from agent_chat.domain.exceptions import ToolInputError, UnknownTool
from agent_chat.domain.models import ToolDefinition
from agent_chat.interfaces import ITool
from agent_chat.tools import ToolRegistry, build_default_tool_registry
from agent_chat.tools.builtin import AnalyzeFileTool, GenerateInsightsTool
from agent_chat.tools.builtin.analyze_file import AnalyzeFileInput


class EchoInput(BaseModel):
    text: str


class EchoTool(ITool):
    name = "echo"
    description = "Echo the input"
    input_model = EchoInput

    def __init__(self):
        self.calls: list[EchoInput] = []

    async def execute(self, arguments: EchoInput) -> dict[str, Any]:
        self.calls.append(arguments)
        return {"echo": arguments.text}


VALID_ANALYZE_ARGS = {"fileName": "spec.pdf", "fileUrl": "https://files.example/spec.pdf", "analysisType": "summary"}


@pytest.mark.unit
class TestToolRegistry:
    """Test tool registry functionality."""

    def test_register_tool(self):
        registry = ToolRegistry()
        tool = EchoTool()

        registry.register(tool)

        assert registry.get("echo") is tool
        assert "echo" in registry

    def test_get_nonexistent_tool(self):
        assert ToolRegistry().get("nonexistent") is None

    def test_list_tool_names(self):
        registry = build_default_tool_registry()

        assert registry.list_tool_names() == ["analyzeFile", "generateInsights"]


@pytest.mark.unit
class TestToolValidation:
    """Arguments are checked against the executor's input model."""

    def test_valid_arguments_return_typed_model(self):
        registry = build_default_tool_registry()

        args = registry.validate("analyzeFile", VALID_ANALYZE_ARGS)

        assert isinstance(args, AnalyzeFileInput)
        assert args.file_name == "spec.pdf"

    def test_missing_field_is_reported(self):
        registry = build_default_tool_registry()
        args = {k: v for k, v in VALID_ANALYZE_ARGS.items() if k != "fileUrl"}

        with pytest.raises(ToolInputError) as exc_info:
            registry.validate("analyzeFile", args)

        error = exc_info.value
        assert error.tool_name == "analyzeFile"
        assert [e["loc"] for e in error.errors] == [("fileUrl",)]
        assert error.errors[0]["type"] == "missing"

    def test_unknown_enum_value_is_rejected(self):
        registry = build_default_tool_registry()

        with pytest.raises(ToolInputError):
            registry.validate("analyzeFile", {**VALID_ANALYZE_ARGS, "analysisType": "poetry"})

    def test_extra_fields_are_rejected(self):
        registry = build_default_tool_registry()

        with pytest.raises(ToolInputError):
            registry.validate("generateInsights", {"topic": "x", "context": "y", "extra": 1})

    def test_non_object_arguments_are_rejected(self):
        registry = build_default_tool_registry()

        with pytest.raises(ToolInputError) as exc_info:
            registry.validate("generateInsights", ["topic"])

        assert exc_info.value.errors[0]["type"] == "dict_type"

    def test_unknown_tool(self):
        with pytest.raises(UnknownTool) as exc_info:
            ToolRegistry().validate("nonexistent", {})

        assert isinstance(exc_info.value, ToolInputError)
        assert exc_info.value.tool_name == "nonexistent"


@pytest.mark.unit
class TestToolExecution:
    """Test tool execution scenarios."""

    async def test_execute_validates_raw_arguments(self):
        tool = EchoTool()
        registry = ToolRegistry([tool])

        result = await registry.execute("echo", {"text": "hi"})

        assert result == {"echo": "hi"}
        assert tool.calls == [EchoInput(text="hi")]

    async def test_invalid_arguments_never_reach_executor(self):
        tool = EchoTool()
        registry = ToolRegistry([tool])

        with pytest.raises(ToolInputError):
            await registry.execute("echo", {"txt": "hi"})

        assert tool.calls == []

    async def test_execute_nonexistent_tool_raises_error(self):
        with pytest.raises(UnknownTool):
            await ToolRegistry().execute("nonexistent", {})

    @pytest.mark.parametrize("analysis_type", ["summary", "insights", "questions"])
    async def test_analyze_file_result(self, analysis_type):
        tool = AnalyzeFileTool()
        args = tool.input_model.model_validate({**VALID_ANALYZE_ARGS, "analysisType": analysis_type})

        result = await tool.execute(args)

        assert result["fileName"] == "spec.pdf"
        assert result["analysisType"] == analysis_type
        assert "spec.pdf" in result["result"]
        assert result["confidence"] == 0.85
        assert result["timestamp"]

    async def test_generate_insights_result(self):
        tool = GenerateInsightsTool()
        args = tool.input_model.model_validate({"topic": "login", "context": "password rules"})

        result = await tool.execute(args)

        assert result["topic"] == "login"
        assert result["confidence"] == 0.92
        assert result["sources"] == ["uploaded documents", "conversation context"]


@pytest.mark.unit
class TestToolFormats:
    """Test tool export formats."""

    def test_to_openai_format(self):
        registry = ToolRegistry([EchoTool()])

        openai_format = registry.to_openai_format()

        assert len(openai_format) == 1
        assert openai_format[0]["type"] == "function"
        assert openai_format[0]["function"]["name"] == "echo"
        assert openai_format[0]["function"]["description"] == "Echo the input"
        assert "text" in openai_format[0]["function"]["parameters"]["properties"]

    def test_configured_definition_takes_precedence(self):
        registry = ToolRegistry([EchoTool()])
        schema = {"type": "object", "properties": {"text": {"type": "string", "maxLength": 10}}}
        definition = ToolDefinition(id="echo", description="Configured", input_schema=schema)

        exported = registry.to_openai_format(definitions={"echo": definition})

        assert exported[0]["function"]["description"] == "Configured"
        assert exported[0]["function"]["parameters"] == schema

    def test_subset_export(self):
        registry = build_default_tool_registry()

        exported = registry.to_openai_format({"analyzeFile": registry.get("analyzeFile")})

        assert [t["function"]["name"] for t in exported] == ["analyzeFile"]

    def test_schema_uses_wire_names(self):
        schema = AnalyzeFileTool().schema

        assert set(schema.parameters["properties"]) == {"fileName", "fileUrl", "analysisType"}

    def test_empty_registry_formats(self):
        assert ToolRegistry().to_openai_format() == []
