# app/main.py
"""
Follow-up Guardrail API with Redis lifecycle management.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.features.nudges.api.router import router as nudges_router
from app.features.nudges.services.nudge_service import get_nudge_service
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.routes import health
from app.services.redis_client import fast_redis

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        ai_enabled=settings.ai_enabled(),
    )

    try:
        logger.info("Initializing Redis connection")
        await fast_redis.initialize()
        logger.info("All services initialized successfully", services=["redis"])
    except Exception as e:
        logger.error("Failed to initialize services", error=str(e))
        raise

    yield

    logger.info("Application shutting down")

    shutdown_errors = []

    # Let in-flight enrichment settle so results are not cut off mid-write
    try:
        await get_nudge_service().drain()
    except Exception as e:
        logger.error("Error draining enrichment tasks", error=str(e))
        shutdown_errors.append(f"Enrichment: {e}")

    try:
        logger.info("Closing Redis connection")
        await fast_redis.close()
    except Exception as e:
        logger.error("Error closing Redis", error=str(e))
        shutdown_errors.append(f"Redis: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="Follow-up Guardrail",
    description="Decides when a networking follow-up is worth a nudge",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(nudges_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
