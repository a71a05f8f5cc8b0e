# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.core.config import get_settings
from src.infrastructure.background.scheduler import get_scheduler
from src.infrastructure.database.connection import DatabaseError, get_engine

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class ComponentsHealth(BaseModel):
    """All components health status."""
    database: ComponentHealth | None = None
    scheduler: ComponentHealth | None = None


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    components: ComponentsHealth = Field(default_factory=ComponentsHealth)


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check database connection."""
    try:
        engine = get_engine()
        start = time.time()

        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        latency = (time.time() - start) * 1000
        return ComponentHealth(status="healthy", latency_ms=round(latency, 2))
    except (DatabaseError, SQLAlchemyError) as e:
        logger.error("Database health check failed: %s", e)
        return ComponentHealth(status="unhealthy", message=str(e))


def check_scheduler() -> ComponentHealth:
    """Check the background job scheduler."""
    settings = get_settings()
    if not settings.lifecycle_sync.enabled:
        return ComponentHealth(status="disabled")

    scheduler = get_scheduler()
    if not scheduler.is_running:
        return ComponentHealth(status="degraded", message="Scheduler not running")

    stats = scheduler.get_stats()
    return ComponentHealth(
        status="healthy",
        message=f"{stats['job_count']} job(s), {stats['total_errors']} error(s)",
    )


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check if the API is healthy with component details.

    Returns:
        HealthResponse with detailed status.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    uptime = int(time.time() - _server_start_time)

    db_health = await check_database()
    scheduler_health = check_scheduler()

    # Determine overall status
    if db_health.status != "healthy":
        overall_status = "unhealthy"
    elif scheduler_health.status == "degraded":
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        timestamp=now,
        version="1.0.0",
        environment=settings.environment,
        uptime_seconds=uptime,
        components=ComponentsHealth(
            database=db_health,
            scheduler=scheduler_health,
        ),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """Check if the API is ready to accept traffic.

    Returns:
        ReadinessResponse with individual check results.
    """
    checks: dict[str, Any] = {}

    db_health = await check_database()
    checks["database"] = {"status": db_health.status, "latency_ms": db_health.latency_ms}

    return ReadinessResponse(ready=db_health.status == "healthy", checks=checks)
