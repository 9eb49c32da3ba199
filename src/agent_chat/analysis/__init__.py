"""Structured document analysis."""

from agent_chat.analysis.service import AnalysisService, FileAnalysis, InsightReport

__all__ = [
    "AnalysisService",
    "FileAnalysis",
    "InsightReport",
]
