"""
Structured document analysis and insight reports.

Both operations ask the model for a JSON object and validate it against a
pydantic model before returning it; a reply that does not fit is a provider
failure.
"""
import json
from datetime import datetime, timezone
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from agent_chat.domain.exceptions import ProviderError
from agent_chat.infrastructure.observability.logging import get_logger
from agent_chat.providers.router import ModelRouter

logger = get_logger(__name__)

FILE_ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert document analyzer. Analyze the provided document content and extract "
    "meaningful insights, summaries, and key information. Be thorough and accurate in your analysis."
)
INSIGHTS_SYSTEM_PROMPT = (
    "You are an expert business analyst and insights generator. Create comprehensive, actionable "
    "insights based on the provided information. Focus on practical recommendations and clear next steps."
)


class FileAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str = Field(..., description="Comprehensive summary of the document content")
    key_points: list[str] = Field(..., alias="keyPoints", description="Main points and important information")
    topics: list[str] = Field(..., description="Key topics and themes identified")
    insights: list[str] = Field(..., description="AI-generated insights and observations")
    questions: list[str] = Field(..., description="Suggested questions for further exploration")
    sentiment: Literal["positive", "neutral", "negative"] = Field(..., description="Overall sentiment of the content")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence score of the analysis")


class KeyFinding(BaseModel):
    finding: str
    importance: Literal["high", "medium", "low"]
    category: str


class InsightReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Title for the insight report")
    overview: str = Field(..., description="High-level overview of the insights")
    key_findings: list[KeyFinding] = Field(..., alias="keyFindings", description="Key findings from the analysis")
    recommendations: list[str] = Field(..., description="Actionable recommendations")
    trends: list[str] = Field(..., description="Identified trends and patterns")
    next_steps: list[str] = Field(..., alias="nextSteps", description="Suggested next steps")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Overall confidence in the insights")


def _schema_instruction(model: type[BaseModel]) -> str:
    schema = json.dumps(model.model_json_schema(by_alias=True))
    return f"Respond only with a JSON object that matches this JSON schema:\n{schema}"


class AnalysisService:
    """
    Generates structured analyses with the configured analysis model.

    Args:
        model_router: Router used to reach the analysis model
        model_id: Model id for both operations
    """

    file_temperature = 0.3
    insights_temperature = 0.4

    def __init__(self, model_router: ModelRouter, model_id: str = "gpt-4o"):
        self._router = model_router
        self._model_id = model_id

    async def _generate(self, model: type[BaseModel], system_prompt: str, user_prompt: str, temperature: float) -> BaseModel:
        provider = self._router.resolve(self._model_id)
        payload = await provider.complete_json(
            [
                {"role": "system", "content": f"{system_prompt}\n\n{_schema_instruction(model)}"},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
        )
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            logger.warning("Model output did not match schema", schema=model.__name__, errors=e.error_count())
            raise ProviderError(
                f"Model returned a {model.__name__} that does not match the expected structure",
                details={"model": provider.model_name, "errors": e.error_count()},
            ) from e

    async def analyze_file(self, file_name: str, file_content: str, owner_id: str) -> dict[str, Any]:
        analysis = await self._generate(
            FileAnalysis,
            FILE_ANALYSIS_SYSTEM_PROMPT,
            f"Please analyze this document titled \"{file_name}\":\n\n{file_content}",
            self.file_temperature,
        )
        logger.info("File analyzed", file_name=file_name, content_length=len(file_content))
        return {
            **analysis.model_dump(by_alias=True),
            "fileName": file_name,
            "analyzedAt": datetime.now(timezone.utc).isoformat(),
            "userId": owner_id,
        }

    async def generate_insights(
        self,
        topic: str,
        context: str,
        owner_id: str,
        file_analyses: Optional[list[Any]] = None,
    ) -> dict[str, Any]:
        file_analyses = file_analyses or []
        sections = [f"Topic: {topic}", f"Context: {context}"]
        if file_analyses:
            sections.append(f"File analyses: {json.dumps(file_analyses, default=str)}")

        report = await self._generate(
            InsightReport,
            INSIGHTS_SYSTEM_PROMPT,
            "Generate comprehensive insights based on this information:\n\n" + "\n\n".join(sections),
            self.insights_temperature,
        )
        logger.info("Insights generated", topic=topic, file_count=len(file_analyses))
        return {
            **report.model_dump(by_alias=True),
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "userId": owner_id,
            "sources": {
                "topic": topic,
                "context": context,
                "fileCount": len(file_analyses),
            },
        }
