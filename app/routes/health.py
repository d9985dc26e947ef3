"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from app.config import settings
from app.db.pool import db_health_check

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "choir-songboard"}


@router.get("/readyz")
async def readyz():
    """Readiness check: database pool plus configuration sanity."""
    checks = {}

    t0 = time.time()
    try:
        db_health = await db_health_check()
        checks["database"] = {
            "ok": bool(db_health.get("healthy", False)),
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        if not checks["database"]["ok"]:
            checks["database"]["error"] = db_health.get("error", "Database unhealthy")
    except Exception as e:
        checks["database"] = {
            "ok": False,
            "error": f"{type(e).__name__}: {e}",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }

    # Video search is optional; report it without failing readiness
    checks["video_search"] = {"ok": True, "configured": bool(settings.YOUTUBE_API_KEY)}

    overall_ok = all(check["ok"] for check in checks.values())
    return {
        "overall_ok": overall_ok,
        "checks": checks,
        "environment": settings.environment,
        "timestamp": time.time(),
    }
