"""
Health Check Endpoints.
System health and readiness checks.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Request

from voice_commerce.config import get_settings
from voice_commerce.db import database

logger = logging.getLogger(__name__)
router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": settings.APP_VERSION
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """
    Readiness check - the engine can answer turns.

    Speech and NLU services are reported but not required: turns degrade
    to text-only or template replies without them.
    """
    state = request.app.state

    checks = {
        "orchestrator": hasattr(state, "orchestrator"),
        "database": database.is_initialized(),
        "session_cache": False
    }

    if hasattr(state, "session_cache"):
        try:
            checks["session_cache"] = await state.session_cache.ping()
        except Exception as e:
            logger.warning(f"Session cache ping failed: {e}")

    services = {
        name: bool(getattr(getattr(state, name, None), "is_initialized", False))
        for name in ("stt_service", "tts_service", "llm_service")
    }

    all_ready = all(checks.values())

    return {
        "status": "ready" if all_ready else "not_ready",
        "checks": checks,
        "services": services,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/health/live")
async def liveness_check():
    """
    Liveness check - just verifies the server is responding.
    """
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat()
    }
