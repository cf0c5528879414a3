"""
Trip API Endpoints.

Create, dispatch, complete and cancel trips. Every transition is a single
coordinator call; the endpoint only authorizes, audits and serializes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.db.session import get_db
from fleetflow.app.core.dependencies import get_coordinator, get_registry
from fleetflow.app.core.guards import require_permission, ensure_own_trip
from fleetflow.app.core.permissions import Operation
from fleetflow.app.domain.fleet.coordinator import FleetCoordinator
from fleetflow.app.domain.fleet.registry import FleetRegistry
from fleetflow.app.models.enums import UserRole
from fleetflow.app.models.fleet_enums import TripStatus
from fleetflow.app.schemas.trip import (
    TripCreate, TripDispatch, TripComplete, TripResponse, TripListResponse
)
from fleetflow.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("", response_model=TripListResponse)
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status"),
    vehicle_id: Optional[int] = Query(None),
    driver_id: Optional[int] = Query(None),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    """List trips, newest first."""
    trips = await registry.list_trips(status=status_filter, vehicle_id=vehicle_id, driver_id=driver_id)
    return TripListResponse(
        trips=[TripResponse.model_validate(t) for t in trips],
        total=len(trips)
    )


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: dict = Depends(require_permission(Operation.CREATE_TRIP)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a DRAFT trip.

    Rejects (409) an unavailable vehicle or driver, and (422) cargo over
    capacity or an expired driver license.
    """
    trip = await coordinator.create_trip(
        vehicle_id=trip_data.vehicle_id,
        driver_id=trip_data.driver_id,
        origin=trip_data.origin,
        destination=trip_data.destination,
        cargo_weight_kg=trip_data.cargo_weight_kg,
        cargo_description=trip_data.cargo_description,
        notes=trip_data.notes,
        created_by=current_user["user_id"]
    )

    await log_user_action(
        db, current_user, AuditAction.TRIP_CREATED,
        metadata={
            "trip_id": trip.id,
            "trip_code": trip.trip_code,
            "vehicle_id": trip.vehicle_id,
            "driver_id": trip.driver_id,
            "cargo_weight_kg": trip.cargo_weight_kg
        }
    )

    return TripResponse.model_validate(trip)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_permission(Operation.VIEW_FLEET)),
    registry: FleetRegistry = Depends(get_registry)
):
    return TripResponse.model_validate(await registry.get_trip(trip_id))


@router.post("/{trip_id}/dispatch", response_model=TripResponse)
async def dispatch_trip(
    trip_id: int = Path(..., description="Trip ID"),
    dispatch_data: TripDispatch = TripDispatch(),
    current_user: dict = Depends(require_permission(Operation.DISPATCH_TRIP)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Dispatch a DRAFT trip. Vehicle and driver move to ON_TRIP."""
    trip = await coordinator.dispatch_trip(trip_id, start_odometer=dispatch_data.start_odometer)

    await log_user_action(
        db, current_user, AuditAction.TRIP_DISPATCHED,
        metadata={"trip_id": trip.id, "vehicle_id": trip.vehicle_id, "driver_id": trip.driver_id}
    )

    return TripResponse.model_validate(trip)


@router.post("/{trip_id}/complete", response_model=TripResponse)
async def complete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    complete_data: TripComplete = TripComplete(),
    current_user: dict = Depends(require_permission(Operation.COMPLETE_TRIP)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    registry: FleetRegistry = Depends(get_registry),
    db: AsyncSession = Depends(get_db)
):
    """
    Complete a DISPATCHED trip, releasing its vehicle and driver.

    DRIVER-role callers may only complete trips assigned to their own
    driver record.
    """
    if current_user.get("role") == UserRole.DRIVER.value:
        ensure_own_trip(current_user, (await registry.get_trip(trip_id)).driver_id)

    trip = await coordinator.complete_trip(
        trip_id, end_odometer=complete_data.end_odometer, notes=complete_data.notes
    )

    await log_user_action(
        db, current_user, AuditAction.TRIP_COMPLETED,
        metadata={"trip_id": trip.id, "end_odometer": trip.end_odometer}
    )

    return TripResponse.model_validate(trip)


@router.post("/{trip_id}/cancel", response_model=TripResponse)
async def cancel_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: dict = Depends(require_permission(Operation.CANCEL_TRIP)),
    coordinator: FleetCoordinator = Depends(get_coordinator),
    db: AsyncSession = Depends(get_db)
):
    """Cancel a DRAFT or DISPATCHED trip. Terminal trips answer 409."""
    trip = await coordinator.cancel_trip(trip_id)

    await log_user_action(db, current_user, AuditAction.TRIP_CANCELLED, metadata={"trip_id": trip.id})

    return TripResponse.model_validate(trip)
