"""
Health check and configuration diagnostics endpoints.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import redis.asyncio as redis
from sqlalchemy import text

from config import cloudinary_credentials_present, missing_cloudinary_credentials, settings
from routers.auth_scope import AuthContext, get_auth_context

router = APIRouter()
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns overall system health status.
    """
    health_status = {
        "status": "healthy",
        "api": "up",
        "database": "unknown",
        "redis": "unknown",
        "cloudinary": "configured" if not missing_cloudinary_credentials() else "missing",
    }

    try:
        from database import engine
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        health_status["database"] = "up"
    except Exception as e:
        logger.warning("Health check database probe failed: %s", e)
        health_status["database"] = f"down: {str(e)}"
        health_status["status"] = "degraded"

    try:
        r = redis.from_url(settings.REDIS_URL)
        await r.ping()
        await r.aclose()
        health_status["redis"] = "up"
    except Exception as e:
        health_status["redis"] = f"down: {str(e)}"
        health_status["status"] = "degraded"

    return health_status


@router.get("/health/ready")
async def readiness_check():
    """Kubernetes-style readiness probe."""
    missing = missing_cloudinary_credentials()
    if not (settings.DATABASE_URL or "").strip():
        missing.append("DATABASE_URL")

    if missing:
        return JSONResponse(
            status_code=503,
            content={"ready": False, "missing": missing},
        )
    return {"ready": True}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}


@router.get("/api/test-env")
async def environment_check():
    """Which secrets are configured. Never returns their values."""
    credentials = cloudinary_credentials_present()
    return {
        "message": "Environment variables check",
        "envCheck": {
            "cloudinary_cloud_name": credentials["cloud_name"],
            "cloudinary_api_key": credentials["api_key"],
            "cloudinary_api_secret": credentials["api_secret"],
            "database_url": bool((settings.DATABASE_URL or "").strip()),
            "clerk_publishable_key": bool((settings.CLERK_PUBLISHABLE_KEY or "").strip()),
            "clerk_secret_key": bool((settings.CLERK_SECRET_KEY or "").strip()),
        },
        "timestamp": _now(),
    }


@router.get("/api/test-db")
async def database_check(auth: AuthContext = Depends(get_auth_context)):
    """Database configuration presence check."""
    return {
        "message": "Database test endpoint",
        "hasDatabaseUrl": bool((settings.DATABASE_URL or "").strip()),
        "timestamp": _now(),
    }
