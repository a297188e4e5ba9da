"""
Health check endpoint.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from consent_manager.core.logging_config import APP_NAME, APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", summary="Health check")
async def health_check(request: Request):
    """
    Report service health.

    The database is checked when a pool is available; a failing check
    turns the response into a 503.
    """
    checks = {}
    healthy = True

    pool = getattr(request.app.state, 'db_pool', None)
    if pool is not None:
        try:
            async with pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            checks['database'] = 'ok'
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            checks['database'] = 'error'
            healthy = False

    body = {
        "status": "ok" if healthy else "degraded",
        "service": APP_NAME,
        "version": APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)
