# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

- GET /health - Liveness with counter store status
- GET /health/ready - Readiness to accept registrations
"""

import logging
import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from student_portal import __version__
from student_portal.api.dependencies import PortalServices, get_optional_services
from student_portal.core.config import Settings, get_settings
from student_portal.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""

    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    components: dict[str, ComponentHealth] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_counter_store(services: PortalServices | None) -> ComponentHealth:
    """Probe the registration counter store."""
    if services is None:
        return ComponentHealth(status="unhealthy", message="Services not initialized")

    start = time.time()
    reachable = await services.store.check_connection()
    latency = round((time.time() - start) * 1000, 2)
    if not reachable:
        return ComponentHealth(status="unhealthy", latency_ms=latency, message="Store unreachable")
    return ComponentHealth(status="healthy", latency_ms=latency)


@router.get("/health", response_model=HealthResponse)
async def health_check(
    services: PortalServices | None = Depends(get_optional_services),
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Check if the API is healthy.

    A down counter store makes the portal degraded, not dead: it keeps
    serving and denies registrations.
    """
    store_health = await check_counter_store(services)
    return HealthResponse(
        status="healthy" if store_health.status == "healthy" else "degraded",
        timestamp=utc_now(),
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        components={"counter_store": store_health},
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(
    services: PortalServices | None = Depends(get_optional_services),
) -> ReadinessResponse:
    """Check if the API is ready to accept registrations."""
    store_health = await check_counter_store(services)
    checks: dict[str, Any] = {
        "counter_store": {"status": store_health.status, "latency_ms": store_health.latency_ms},
    }
    if services is not None and services.scheduler is not None:
        checks["reconciliation"] = services.scheduler.get_stats()
    return ReadinessResponse(ready=store_health.status == "healthy", checks=checks)
