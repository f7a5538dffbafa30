"""
HealthFinder API — Health Check Route
=======================================

What:  Liveness/readiness probe for load balancers and monitoring.
How:   Pings the store with SELECT 1 and updates the shared connection
       state, so a recovered store re-opens the readiness gate.

Status levels:
    healthy:   store reachable (HTTP 200)
    unhealthy: store unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy.exc import SQLAlchemyError

from healthfinder import __version__
from healthfinder.database import ping_store, store_state
from healthfinder.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Store unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await ping_store()
        store_state.mark_connected()
    except (SQLAlchemyError, OSError) as e:
        store_state.mark_disconnected()
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: store unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
