"""Health check and metrics endpoints."""
import time
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from fastapi import APIRouter, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pydantic import BaseModel, Field

from agent_chat.api.dependencies import AppSettings, Database

# Application startup time for uptime calculation
_startup_time = time.time()

router = APIRouter()


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""
    name: str = Field(..., description="Component name")
    status: HealthStatus = Field(..., description="Component health status")
    latency_ms: Optional[float] = Field(None, description="Response latency in milliseconds")
    error: Optional[str] = Field(None, description="Error message if unhealthy")


class HealthResponse(BaseModel):
    """Health check response."""
    status: HealthStatus = Field(..., description="Overall system health status")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    version: str = Field(..., description="Application version")
    components: List[ComponentHealth] = Field(default_factory=list)


@router.get("/health", response_model=HealthResponse)
async def health(settings: AppSettings, db: Database) -> HealthResponse:
    """
    Service health.

    The history store is optional: when it is not configured the service is
    healthy; when it is configured but unreachable the service is degraded,
    since chat keeps working without persistence.
    """
    components: list[ComponentHealth] = []
    overall = HealthStatus.HEALTHY

    if db.is_connected:
        started = time.perf_counter()
        ok = await db.health_check()
        components.append(
            ComponentHealth(
                name="history_store",
                status=HealthStatus.HEALTHY if ok else HealthStatus.UNHEALTHY,
                latency_ms=round((time.perf_counter() - started) * 1000, 2),
                error=None if ok else "Database health check failed",
            )
        )
        if not ok:
            overall = HealthStatus.DEGRADED

    return HealthResponse(
        status=overall,
        uptime_seconds=round(time.time() - _startup_time, 2),
        version=settings.app_version,
        components=components,
    )


@router.get("/metrics", response_class=PlainTextResponse, include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics exposition."""
    return Response(
        generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
