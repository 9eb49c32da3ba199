# src/agent_chat/api/dependencies.py
from typing import Annotated
from fastapi import Depends, Request

from agent_chat.agent.registry import AgentRegistry
from agent_chat.analysis.service import AnalysisService
from agent_chat.auth.identity import Identity, identity_from_request
from agent_chat.config.settings import Settings, get_settings
from agent_chat.domain.exceptions import AuthError
from agent_chat.history.recorder import HistoryRecorder
from agent_chat.infrastructure.database.connection import DatabaseManager
from agent_chat.orchestration.orchestrator import ChatOrchestrator


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_orchestrator(request: Request) -> ChatOrchestrator:
    return request.app.state.orchestrator


def get_agent_registry(request: Request) -> AgentRegistry:
    return request.app.state.orchestrator.agent_registry


def get_recorder(request: Request) -> HistoryRecorder:
    return request.app.state.recorder


def get_database(request: Request) -> DatabaseManager:
    return request.app.state.db


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis


def get_identity(request: Request) -> Identity:
    settings = get_app_settings(request)
    return identity_from_request(request, settings.identity_header)


def require_identity(identity: Annotated[Identity, Depends(get_identity)]) -> Identity:
    """Identity of a signed-in caller; raises 401 otherwise."""
    if not identity.is_authenticated:
        raise AuthError("Authentication required")
    return identity


# Type aliases for clean injection
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Orchestrator = Annotated[ChatOrchestrator, Depends(get_orchestrator)]
Agents = Annotated[AgentRegistry, Depends(get_agent_registry)]
Recorder = Annotated[HistoryRecorder, Depends(get_recorder)]
Database = Annotated[DatabaseManager, Depends(get_database)]
Analysis = Annotated[AnalysisService, Depends(get_analysis_service)]
CurrentIdentity = Annotated[Identity, Depends(get_identity)]
AuthenticatedIdentity = Annotated[Identity, Depends(require_identity)]
