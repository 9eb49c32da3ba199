"""Structured document analysis endpoints (signed-in callers only)."""
from typing import Any

from fastapi import APIRouter

from agent_chat.api.dependencies import Analysis, AuthenticatedIdentity
from agent_chat.api.schemas.chat import AnalyzeFileRequest, GenerateInsightsRequest

router = APIRouter()


@router.post("/analyze-file")
async def analyze_file(
    identity: AuthenticatedIdentity,
    body: AnalyzeFileRequest,
    analysis: Analysis,
) -> dict[str, Any]:
    """Summary, key points, topics, insights, questions and sentiment of a document."""
    result = await analysis.analyze_file(body.file_name, body.file_content, identity.owner_id)
    return {"success": True, "analysis": result}


@router.post("/generate-insights")
async def generate_insights(
    identity: AuthenticatedIdentity,
    body: GenerateInsightsRequest,
    analysis: Analysis,
) -> dict[str, Any]:
    """Insight report from a topic, conversation context and earlier file analyses."""
    result = await analysis.generate_insights(
        body.topic,
        body.context,
        identity.owner_id,
        file_analyses=body.file_analyses,
    )
    return {"success": True, "insights": result}
