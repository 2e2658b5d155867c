"""
EchoNote Backend: Health Check Route
=====================================

What:  Health endpoint for container probes and monitoring.
How:   Runs `SELECT 1` through the session factory and inspects the Gemini
       client (configuration and circuit breaker state).

Status levels:
    - healthy:   database reachable, Gemini configured and circuit closed (200)
    - degraded:  database reachable, Gemini unusable (200)
    - unhealthy: database unreachable (503)

The Gemini check does not call the API unless `?deep=true` is passed, in
which case GeminiClient.health_check() lists the available models.
"""

import logging
import time

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from echonote import __version__
from echonote.dependencies import ServiceContainer, get_container
from echonote.schemas.common import HealthResponse
from echonote.services.gemini_client import CircuitBreaker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    deep: bool = Query(default=False, description="Also call the Gemini API"),
    container: ServiceContainer = Depends(get_container),
) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with container.session_factory() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", e)

    client = container.gemini_client
    if client is None:
        gemini_status = "external"
    elif not client.is_configured:
        gemini_status = "not_configured"
    elif client.circuit_breaker.state == CircuitBreaker.OPEN:
        gemini_status = "circuit_open"
    elif deep and not await client.health_check():
        gemini_status = "unavailable"
    else:
        gemini_status = "configured"

    if overall == "healthy" and gemini_status in ("not_configured", "circuit_open", "unavailable"):
        overall = "degraded"

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        gemini=gemini_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
