"""FastAPI application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from owner_routing.api.v1 import ownership
from owner_routing.config import settings
from owner_routing.observability import configure_logging

configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Starting Owner Routing", version=settings.app_version)

    from owner_routing.models.database import init_db
    try:
        await init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.warning("Failed to initialize database", error=str(e))

    yield

    # Shutdown
    logger.info("Shutting down Owner Routing")
    from owner_routing.connectors import github_connector
    await github_connector.disconnect()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Routes changed files, modules and issues to their accountable owners",
    lifespan=lifespan,
)

app.include_router(
    ownership.router,
    prefix=f"{settings.api_prefix}/ownership",
    tags=["Ownership"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/ready")
async def readiness_check(db: AsyncEngine = Depends(ownership.get_db_engine)):
    """Readiness check endpoint for Kubernetes."""
    checks = {}

    # Check the ownership store
    try:
        async with db.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {str(e)}"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "degraded",
        "checks": checks,
    }
