"""FastAPI application entrypoint — lifespan, routers, middleware."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from greenhouse_hub.config import get_settings
from greenhouse_hub.database import engine
from greenhouse_hub.middleware.logging import (
    RequestLoggingMiddleware,
    configure_structured_logging,
)
from greenhouse_hub.middleware.rate_limit import RateLimitMiddleware
from greenhouse_hub.routes import (
    ai,
    analytics,
    auth,
    community,
    forum,
    members,
    resources,
    roadmap,
)
from greenhouse_hub.services.upload_service import UPLOAD_URL_PREFIX

SERVICE_NAME = "greenhouse-hub"
SERVICE_VERSION = "0.1.0"

logger = structlog.get_logger("greenhouse_hub")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Verify the database connection
      3. Connect to Redis when configured (rate limiting and caches)

    Shutdown:
      1. Close Redis connection pool
      2. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "service_starting",
        service=SERVICE_NAME,
        log_level=settings.log_level,
        redis_enabled=bool(settings.redis_url),
    )

    redis: Redis | None = None
    app.state.redis = None
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

        if settings.redis_url:
            redis = Redis.from_url(settings.redis_url, decode_responses=True)
            await redis.ping()
            app.state.redis = redis
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        raise

    yield

    logger.info("service_stopping", service=SERVICE_NAME)
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="Greenhouse Hub API",
    description=(
        "Member platform for a greenhouse growers association — resource "
        "library, forum, grower directory, farm roadmap self assessment, "
        "AI assistants and admin back office."
    ),
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware (last added runs first) ─────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


# ── Health checks ───────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Liveness — the API process is up."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


async def _run_readiness_checks(application: FastAPI) -> dict[str, Any]:
    checks: dict[str, Any] = {}
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("readiness_database_failed", error=str(exc))
        checks["database"] = "error"

    redis: Redis | None = getattr(application.state, "redis", None)
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except (RedisError, OSError) as exc:
            logger.warning("readiness_redis_failed", error=str(exc))
            checks["redis"] = "error"
    return checks


@app.get("/health/ready", tags=["system"])
async def readiness_check() -> JSONResponse:
    """Readiness — database and Redis reachable; 503 when any check fails."""
    checks = await _run_readiness_checks(app)
    healthy = all(value != "error" for value in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "ok" if healthy else "degraded",
            "service": SERVICE_NAME,
            "checks": checks,
        },
    )


# ── Uploaded attachments ───────────────────────────────────────────────────
app.mount(
    UPLOAD_URL_PREFIX,
    StaticFiles(directory=get_settings().upload_dir, check_dir=False),
    name="uploads",
)

# ── Router registration ────────────────────────────────────────────────────
app.include_router(auth.router, prefix="/api/v1")
app.include_router(auth.profile_router, prefix="/api/v1")
app.include_router(resources.router, prefix="/api/v1")
app.include_router(resources.admin_router, prefix="/api/v1")
app.include_router(resources.favorites_router, prefix="/api/v1")
app.include_router(forum.router, prefix="/api/v1")
app.include_router(community.router, prefix="/api/v1")
app.include_router(community.admin_router, prefix="/api/v1")
app.include_router(analytics.router, prefix="/api/v1")
app.include_router(analytics.admin_router, prefix="/api/v1")
app.include_router(members.router, prefix="/api/v1")
app.include_router(ai.router, prefix="/api/v1")
app.include_router(roadmap.router, prefix="/api/v1")
app.include_router(roadmap.admin_router, prefix="/api/v1")
