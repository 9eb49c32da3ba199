"""analyzeFile tool: canned analysis of an uploaded document."""
from datetime import datetime, timezone
from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field

from agent_chat.interfaces import ITool


AnalysisType = Literal["summary", "insights", "questions"]


class AnalyzeFileInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    file_name: str = Field(..., alias="fileName", description="Name of the file to analyze")
    file_url: str = Field(..., alias="fileUrl", description="URL of the uploaded file")
    analysis_type: AnalysisType = Field(
        ..., alias="analysisType", description="Type of analysis to perform"
    )


_TEMPLATES: dict[str, str] = {
    "summary": (
        "Summary of {name}: This document contains important information about the topic "
        "discussed. Key points include strategic insights, data analysis, and recommendations "
        "for future actions."
    ),
    "insights": (
        "Key insights from {name}: 1) Market trends show positive growth, 2) Customer "
        "satisfaction is high, 3) Operational efficiency can be improved, 4) Technology "
        "adoption is accelerating."
    ),
    "questions": (
        "Suggested questions about {name}: What are the main conclusions? How does this "
        "relate to current strategy? What actions should be taken next?"
    ),
}


class AnalyzeFileTool(ITool):
    """Produces a summary, insight list or question list for a named file."""

    name = "analyzeFile"
    description = "Analyze uploaded files and provide insights"
    input_model = AnalyzeFileInput

    confidence: float = 0.85

    async def execute(self, arguments: AnalyzeFileInput) -> dict[str, Any]:
        return {
            "fileName": arguments.file_name,
            "analysisType": arguments.analysis_type,
            "result": _TEMPLATES[arguments.analysis_type].format(name=arguments.file_name),
            "confidence": self.confidence,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
