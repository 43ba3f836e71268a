"""
SpeakerHub Backend — Health Check Route
=========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs `SELECT 1` against the database and reports which integrations
       are live and which are simulated.
Who:   Called by container health checks, load balancers and monitoring.

Status levels:
    - healthy:   database reachable
    - unhealthy: database unreachable (bookings cannot be served)
    Simulated integrations never make the service unhealthy.
"""

import logging
import time

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from speakerhub import __version__
from speakerhub.config import settings
from speakerhub.database import engine
from speakerhub.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


def _mode(configured: bool) -> str:
    return "configured" if configured else "simulated"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its dependencies. "
        "Used by container health checks and load balancers."
    ),
)
async def health_check(request: Request) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        demo_mode=request.app.state.demo_mode,
        sms=_mode(settings.sms_configured),
        email=_mode(settings.email_configured),
        calendar=_mode(settings.calendar_configured),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
