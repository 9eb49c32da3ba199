"""Built-in tool executors."""

from agent_chat.tools.builtin.analyze_file import AnalyzeFileInput, AnalyzeFileTool
from agent_chat.tools.builtin.generate_insights import GenerateInsightsInput, GenerateInsightsTool

__all__ = [
    "AnalyzeFileInput",
    "AnalyzeFileTool",
    "GenerateInsightsInput",
    "GenerateInsightsTool",
]
