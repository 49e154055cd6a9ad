"""
Tutorium Backend — Health Check Route
=======================================

What:  Health check endpoint for monitoring and load balancer probes, plus
       the unauthenticated /api/status ping the frontend uses on boot.
How:   Runs `SELECT 1` against the database and reports uptime.

Status levels:
    - healthy:   database reachable
    - unhealthy: database unreachable (the API cannot serve anything useful)
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from tutorium import __version__
from tutorium.config import settings
from tutorium.database import engine
from tutorium.models.base import utcnow
from tutorium.schemas.common import HealthResponse, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend and its database. "
        "Used by Docker health checks and load balancers."
    ),
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )


@router.get(
    "/api/status",
    response_model=StatusResponse,
    summary="API liveness ping",
)
async def api_status() -> StatusResponse:
    return StatusResponse(
        message="Backend is working!",
        timestamp=utcnow(),
        environment=settings.environment,
    )
