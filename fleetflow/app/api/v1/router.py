"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleetflow.app.api.v1.endpoints import (
    auth, vehicles, drivers, trips, maintenance, fuel, analytics
)

router = APIRouter()

router.include_router(auth.router)

# Fleet assets
router.include_router(vehicles.router)
router.include_router(drivers.router)

# Trip lifecycle
router.include_router(trips.router)

# Maintenance and fuel
router.include_router(maintenance.router)
router.include_router(fuel.router)

router.include_router(analytics.router)
