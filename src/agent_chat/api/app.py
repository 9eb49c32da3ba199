# src/agent_chat/api/app.py
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agent_chat.agent.registry import AgentRegistry
from agent_chat.analysis.service import AnalysisService
from agent_chat.api.middleware.errors import register_error_handlers
from agent_chat.api.middleware.request_id import RequestIDMiddleware
from agent_chat.api.routes import agents, analysis, chat, health, history
from agent_chat.config.settings import Settings, get_settings
from agent_chat.history.recorder import HistoryRecorder
from agent_chat.infrastructure.database import DatabaseManager
from agent_chat.infrastructure.observability.logging import configure_logging, get_logger
from agent_chat.orchestration.orchestrator import ChatOrchestrator
from agent_chat.providers.router import ModelRouter
from agent_chat.tools import ToolRegistry, build_default_tool_registry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    settings: Settings = app.state.settings
    db: DatabaseManager = app.state.db
    configure_logging()

    # History is persisted only when a database is configured
    if settings.database_url and not db.is_connected:
        await db.connect(
            url=settings.database_url.get_secret_value(),
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
            echo_sql=settings.db_echo_sql,
        )
        if settings.db_create_tables:
            await db.create_all()
    elif not db.is_connected:
        logger.info("Database not configured - chat history will not be persisted")

    logger.info(
        "Service started",
        environment=settings.environment,
        default_agent=app.state.orchestrator.agent_registry.default_agent_id,
    )

    yield

    # Shutdown
    # Pending history writes finish before the store goes away
    await app.state.recorder.drain()
    await app.state.model_router.aclose()
    if db.is_connected:
        await db.disconnect()
        logger.info("Database connection closed")


def create_app(
    settings: Optional[Settings] = None,
    *,
    model_router: Optional[ModelRouter] = None,
    recorder: Optional[HistoryRecorder] = None,
    tool_registry: Optional[ToolRegistry] = None,
    agent_registry: Optional[AgentRegistry] = None,
    db: Optional[DatabaseManager] = None,
) -> FastAPI:
    """
    Application factory.

    Agent configuration is loaded here rather than at startup, so a bad
    configuration file fails the import instead of the first request.
    Every collaborator can be replaced, which is how the tests run the
    service without model credentials.
    """
    settings = settings or get_settings()

    tool_registry = tool_registry or build_default_tool_registry()
    agent_registry = agent_registry or AgentRegistry.from_file(
        settings.agents_config_path, tool_registry=tool_registry
    )
    model_router = model_router or ModelRouter(settings)
    db = db or DatabaseManager()
    recorder = recorder or HistoryRecorder(
        db,
        default_limit=settings.history_default_limit,
        max_limit=settings.history_max_limit,
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
# Agent Chat API

Streaming conversational front end for a set of configured AI agents.

- **Chat**: `POST /chat` streams server-sent events (`content-delta`,
  `tool-call`, `tool-result`, `done`, `error`)
- **Agents**: `GET /agents` lists the agents available to the caller
- **History**: `GET /history` returns persisted turns of signed-in callers
- **Analysis**: structured document analysis for signed-in callers

The caller's identity is resolved upstream and forwarded in the
`X-User-Id` header.
        """,
        docs_url="/docs" if settings.debug else None,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Liveness and metrics."},
            {"name": "Chat", "description": "Streaming chat turns."},
            {"name": "Agents", "description": "Configured agents."},
            {"name": "History", "description": "Persisted conversation history."},
            {"name": "Analysis", "description": "Structured document analysis."},
        ],
    )

    app.state.settings = settings
    app.state.db = db
    app.state.recorder = recorder
    app.state.model_router = model_router
    app.state.orchestrator = ChatOrchestrator(
        agent_registry=agent_registry,
        model_router=model_router,
        tool_registry=tool_registry,
        recorder=recorder,
    )
    app.state.analysis = AnalysisService(model_router, model_id=settings.analysis_model_id)

    # Middleware (added in reverse order of execution)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=["X-Request-ID", "X-Agent-Id"],
    )

    # Error handlers
    register_error_handlers(app, settings)

    # Routes (root level, no versioning)
    app.include_router(health.router, tags=["Health"])
    app.include_router(chat.router, tags=["Chat"])
    app.include_router(agents.router, tags=["Agents"])
    app.include_router(history.router, tags=["History"])
    app.include_router(analysis.router, tags=["Analysis"])

    return app


app = create_app()
