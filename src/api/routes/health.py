# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

- GET /health - Liveness with database latency
- GET /ready - Readiness: database reachable and schema migrated

Readiness checks that the low-credit message template seeded by the
initial migration is present. Without it completed sessions would still
deduct credits but parents would never be alerted.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

from src import __version__
from src.api.dependencies import get_scheduling_settings
from src.core.config import SchedulingSettings, get_settings
from src.infrastructure.database.connection import DatabaseError, get_engine, get_sessionmaker
from src.infrastructure.database.models import MessageTemplate

logger = logging.getLogger(__name__)

router = APIRouter()

_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""

    status: str = Field(description="healthy or unhealthy")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    database: ComponentHealth


class ReadinessResponse(BaseModel):
    """Readiness response."""

    ready: bool = Field(description="Whether the service can take traffic")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check the scheduling database connection."""
    try:
        start = time.perf_counter()
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        latency = (time.perf_counter() - start) * 1000
        return ComponentHealth(status="healthy", latency_ms=round(latency, 2))
    except (DatabaseError, SQLAlchemyError, OSError) as e:
        logger.error("Database health check failed: %s", str(e))
        return ComponentHealth(status="unhealthy", message=str(e))


async def check_schema(template_id: str) -> ComponentHealth:
    """Check that migrations ran by looking for the seeded alert template.

    Args:
        template_id: Message template used for low-credit alerts.
    """
    try:
        async with get_sessionmaker()() as session:
            found = await session.scalar(
                select(MessageTemplate.id).where(MessageTemplate.id == template_id)
            )
    except (DatabaseError, SQLAlchemyError, OSError) as e:
        logger.error("Schema check failed: %s", str(e))
        return ComponentHealth(status="unhealthy", message=str(e))

    if found is None:
        return ComponentHealth(
            status="unhealthy",
            message=f"Message template '{template_id}' missing, run 'alembic upgrade head'",
        )
    return ComponentHealth(status="healthy")


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report liveness and database latency."""
    db_health = await check_database()
    return HealthResponse(
        status=db_health.status,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=get_settings().environment,
        uptime_seconds=int(time.time() - _server_start_time),
        database=db_health,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    settings: SchedulingSettings = Depends(get_scheduling_settings),
) -> ReadinessResponse:
    """Check whether the API can serve scheduling traffic.

    Returns:
        ReadinessResponse with database and schema results.
    """
    db_health = await check_database()
    checks: dict[str, Any] = {
        "database": {"status": db_health.status, "latency_ms": db_health.latency_ms},
    }
    ready = db_health.status == "healthy"

    if ready:
        schema = await check_schema(settings.low_credit_template_id)
        checks["schema"] = {"status": schema.status, "message": schema.message}
        ready = schema.status == "healthy"

    return ReadinessResponse(ready=ready, checks=checks)
