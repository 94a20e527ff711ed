"""
Health Check Endpoints
"""

import time
from typing import Any, Dict

from fastapi import APIRouter
import structlog

from forum_api.core.config import settings
from forum_api.core.database import check_database_health
from forum_api.schemas.base import HealthCheck, HealthStatus

logger = structlog.get_logger()
router = APIRouter()

SERVICE_VERSION = "1.0.0"


@router.get("", response_model=HealthCheck)
async def health_check() -> HealthCheck:
    """
    Service health with a database connectivity check

    Returns:
        Health status with individual checks
    """
    checks = {}
    overall_status = HealthStatus.HEALTHY

    try:
        db_healthy = await check_database_health()
        checks["database"] = {"status": "healthy" if db_healthy else "unhealthy"}
        if not db_healthy:
            overall_status = HealthStatus.UNHEALTHY
    except Exception as e:
        logger.error("Health check error", error=str(e))
        overall_status = HealthStatus.UNHEALTHY
        checks["error"] = {"message": str(e)}

    return HealthCheck(
        status=overall_status,
        service=settings.SERVICE_NAME,
        version=SERVICE_VERSION,
        checks=checks,
    )


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    return {"status": "alive", "timestamp": time.time()}
