"""Tool registry and built-in executors."""

from agent_chat.tools.builtin import AnalyzeFileTool, GenerateInsightsTool
from agent_chat.tools.registry import ToolRegistry


def build_default_tool_registry() -> ToolRegistry:
    """Registry holding every built-in executor."""
    return ToolRegistry([AnalyzeFileTool(), GenerateInsightsTool()])


__all__ = [
    "ToolRegistry",
    "build_default_tool_registry",
]
