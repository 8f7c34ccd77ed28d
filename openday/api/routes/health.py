"""
Health check endpoints
"""

import logging
from datetime import datetime

from fastapi import APIRouter

from ...core.engine import get_engine
from ...exceptions import OpenDayException
from ...metrics import get_metrics

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/status")
def health_status():
    """Get overall health status of the service"""
    try:
        engine = get_engine()

        health_details = {
            "catalog": "healthy" if len(engine.catalog) > 0 else "degraded",
            "popularity_store": "healthy" if engine.popularity is not None else "unhealthy",
        }

        overall_status = "healthy" if all(v == "healthy" for v in health_details.values()) else "degraded"

        return {
            "status": overall_status,
            "timestamp": datetime.utcnow().isoformat(),
            "components": health_details,
            "event_count": len(engine.catalog),
        }

    except OpenDayException as e:
        logger.error(f"Health check error: {e.message}")
        return {
            "status": "unhealthy",
            "timestamp": datetime.utcnow().isoformat(),
            "error": e.message
        }


@router.get("/ready")
def readiness_check():
    """Check if service is ready to accept requests"""
    try:
        engine = get_engine()

        if len(engine.catalog) == 0:
            return {
                "ready": False,
                "reason": "Event catalog is empty"
            }

        return {
            "ready": True,
            "timestamp": datetime.utcnow().isoformat()
        }

    except OpenDayException as e:
        logger.error(f"Readiness check error: {e.message}")
        return {
            "ready": False,
            "reason": e.message
        }


@router.get("/metrics")
def metrics():
    """Request and engine counters"""
    return get_metrics().get_metrics()
