"""
FastAPI Application Entry Point.

This is the main application file for the Shipment Tracking Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from tracking_backend.app.core.config import settings
from tracking_backend.app.api.v1.router import router as api_v1_router
from tracking_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from tracking_backend.app.core.redis_client import ping_redis
from tracking_backend.app.db.session import engine, Base, get_db
from tracking_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from tracking_backend.app.models.user import User
from tracking_backend.app.models.audit_log import AuditLog
from tracking_backend.app.models.shipment import Shipment
from tracking_backend.app.models.shipment_timeline import ShipmentTimeline  # after Shipment for FK

logger = logging.getLogger("tracking.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging.
    2. Creates database tables on startup.
    3. Disposes the engine on shutdown.
    """
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Application started", extra={"version": settings.api_version})
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Shipment tracking: admin shipment management and public tracking",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    The database is required; Redis only backs sign-out, so its absence
    degrades the service instead of failing it.
    """
    try:
        await db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
        database_ok = False

    redis_ok = await ping_redis()

    if not database_ok:
        overall = "unhealthy"
    elif not redis_ok:
        overall = "degraded"
    else:
        overall = "healthy"

    return {
        "status": overall,
        "app_name": settings.app_name,
        "version": settings.api_version,
        "checks": {"database": database_ok, "redis": bool(redis_ok)},
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Shipment Tracking API",
        "docs": "/docs",
        "health": "/health",
        "tracking": f"/{settings.api_version}/track/{{tracking_code}}",
    }
