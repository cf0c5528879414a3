"""
FastAPI Application Entry Point.

This is the main application file for the FleetFlow backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fleetflow.app.core.config import settings
from fleetflow.app.core.logging_config import setup_logging
from fleetflow.app.core.observability import ObservabilityMiddleware
from fleetflow.app.api.v1.router import router as api_v1_router
from fleetflow.app.db.session import engine, Base
from fleetflow.app.domain.fleet.errors import CoordinatorError, StorageError
from fleetflow.app.core.exceptions import (
    AppException,
    app_exception_handler,
    coordinator_exception_handler,
    storage_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from fleetflow.app.models.user import User  # noqa: F401
from fleetflow.app.models.audit_log import AuditLog  # noqa: F401
from fleetflow.app.models.vehicle import Vehicle  # noqa: F401
from fleetflow.app.models.driver import Driver  # noqa: F401
from fleetflow.app.models.trip import Trip  # noqa: F401
from fleetflow.app.models.maintenance_log import MaintenanceLog  # noqa: F401
from fleetflow.app.models.fuel_log import FuelLog  # noqa: F401

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Disposes the engine pool on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Fleet resource coordinator: vehicles, drivers, trips and maintenance",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(CoordinatorError, coordinator_exception_handler)
app.add_exception_handler(StorageError, storage_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the FleetFlow API",
        "docs": "/docs",
        "health": "/health",
    }
