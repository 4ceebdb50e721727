# app/routes/health.py
"""
Health check endpoints.
"""

import time

from fastapi import APIRouter

from app.config import settings
from app.services.redis_client import fast_redis

router = APIRouter()


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "followup-guardrail"}


@router.get("/readyz")
async def readyz():
    """
    Readiness check: learning state store plus configuration.

    AI enrichment is optional, so a missing API key is reported but never
    makes the service unready.
    """
    checks = {}
    overall_ok = True

    # 1) Redis health check
    t0 = time.time()
    try:
        redis_ok = await fast_redis.ping()
        checks["redis"] = {
            "ok": bool(redis_ok),
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        overall_ok = overall_ok and bool(redis_ok)
    except Exception as e:
        checks["redis"] = {"ok": False, "error": f"{type(e).__name__}: {e}"}
        overall_ok = False

    # 2) Configuration checks
    config_ok = True
    config_issues = []

    if not settings.REDIS_URL:
        config_issues.append("REDIS_URL not set")
        config_ok = False

    if settings.AI_ASSIST_ENABLED and not settings.OPENAI_API_KEY:
        config_issues.append("OPENAI_API_KEY not set, AI assist falls back to rules")

    checks["configuration"] = {
        "ok": config_ok,
        "issues": config_issues if config_issues else None,
        "environment": settings.environment,
        "ai_enabled": settings.ai_enabled(),
    }
    overall_ok = overall_ok and config_ok

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
