# tests/conftest.py
"""
Main pytest configuration and shared fixtures for all tests.

This module provides:
- Async test support (pytest-asyncio auto mode)
- Test settings (passed explicitly to the app factory)
- Agent and tool registries built from the packaged agent configuration
- A scripted model provider in place of real model families
- An in-memory SQLite history store
- The FastAPI app and an async HTTP client bound to it
"""

from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from agent_chat.agent.registry import AgentRegistry
from agent_chat.api.app import create_app
from agent_chat.config.settings import DEFAULT_AGENTS_CONFIG, Settings
from agent_chat.history.recorder import HistoryRecorder
from agent_chat.infrastructure.database.connection import DatabaseManager
from agent_chat.orchestration.orchestrator import ChatOrchestrator
from agent_chat.tools import ToolRegistry, build_default_tool_registry
from tests.factories import FakeModelRouter, ScriptedProvider


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest-asyncio to use auto mode."""
    config.option.asyncio_mode = "auto"


# ============================================================================
# Settings and Configuration
# ============================================================================

@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Test settings with overrides for test environment.

    No model credentials and no database: tests inject fakes for both.
    """
    return Settings(
        app_name="Agent Chat Test",
        app_version="0.1.0-test",
        environment="local",
        debug=True,
        database_url=None,
        google_generative_ai_api_key=None,
        openai_api_key=None,
        log_level=40,  # ERROR level to reduce noise in tests
        log_format="console",
    )


# ============================================================================
# Registries
# ============================================================================

@pytest.fixture
def tool_registry() -> ToolRegistry:
    return build_default_tool_registry()


@pytest.fixture
def agent_registry(tool_registry: ToolRegistry) -> AgentRegistry:
    """Registry loaded from the packaged agents.json."""
    return AgentRegistry.from_file(DEFAULT_AGENTS_CONFIG, tool_registry=tool_registry)


# ============================================================================
# Model Provider
# ============================================================================

@pytest.fixture
def provider() -> ScriptedProvider:
    """Scripted provider; tests replace ``provider.script`` as needed."""
    return ScriptedProvider()


@pytest.fixture
def model_router(provider: ScriptedProvider) -> FakeModelRouter:
    return FakeModelRouter(provider)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
async def db_manager() -> AsyncGenerator[DatabaseManager, None]:
    """
    Connected DatabaseManager over a fresh in-memory SQLite database.

    Tables are created from SQLModel metadata; the database disappears with
    the engine at the end of each test.
    """
    manager = DatabaseManager()
    await manager.connect("sqlite+aiosqlite:///:memory:")
    await manager.create_all()

    yield manager

    await manager.disconnect()


@pytest.fixture
async def recorder(db_manager: DatabaseManager) -> HistoryRecorder:
    return HistoryRecorder(db_manager, default_limit=50, max_limit=200)


@pytest.fixture
def orchestrator(
    agent_registry: AgentRegistry,
    model_router: FakeModelRouter,
    tool_registry: ToolRegistry,
    recorder: HistoryRecorder,
) -> ChatOrchestrator:
    return ChatOrchestrator(
        agent_registry=agent_registry,
        model_router=model_router,
        tool_registry=tool_registry,
        recorder=recorder,
    )


# ============================================================================
# FastAPI Application and Client
# ============================================================================

@pytest.fixture
def app(
    test_settings: Settings,
    model_router: FakeModelRouter,
    recorder: HistoryRecorder,
    db_manager: DatabaseManager,
    tool_registry: ToolRegistry,
    agent_registry: AgentRegistry,
) -> FastAPI:
    """Application wired to the scripted provider and the SQLite store."""
    return create_app(
        test_settings,
        model_router=model_router,
        recorder=recorder,
        tool_registry=tool_registry,
        agent_registry=agent_registry,
        db=db_manager,
    )


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for API testing.

    Usage:
        async def test_endpoint(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def user_headers() -> dict[str, str]:
    """Identity header of a signed-in user."""
    return {"X-User-Id": "user-123"}
